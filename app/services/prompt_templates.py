from __future__ import annotations

from app.schemas.resume import (
    DEFAULT_EMAIL,
    DEFAULT_LINKEDIN,
    DEFAULT_LOCATION,
    DEFAULT_NAME,
    DEFAULT_PHONE,
    ResumeRecord,
)

RESUME_DATA_PLACEHOLDER = "{RESUME_DATA}"
JOB_DESCRIPTION_PLACEHOLDER = "{JOB_DESCRIPTION}"
DEFAULT_PROMPT_NAME = "ATS-optimized cover letter"

COVER_LETTER_PROMPT = """
You are an expert cover letter writer specializing in ATS-optimized content. Generate a professional cover letter based on the following inputs:

[resume]
{RESUME_DATA}

[job-content]
{JOB_DESCRIPTION}

STRICT INSTRUCTIONS:

1. Use ONLY information from the [resume]. Do not invent experiences, skills or achievements that the resume does not mention.

2. ATS optimization:
   - Reuse the exact keywords and phrases of the [job-content] where they align with the resume
   - Mirror the job description's terminology instead of abbreviating it
   - Avoid tables, columns, headers, footers and special characters

3. Structure:
   - Opening paragraph naming the position and expressing interest
   - Two or three body paragraphs matching resume experience to the job requirements
   - Closing paragraph with enthusiasm and next steps
   - 250 to 400 words in total

4. Writing:
   - Keep the action verbs and numbers used in the resume
   - Keep a professional tone and plain formatting

5. Formatting:
   - Do NOT include bracketed placeholders such as "[Platform where you saw the advertisement]"
   - Do NOT repeat "Sincerely,"
   - Leave a blank line before "Sincerely,"

OUTPUT FORMAT:
Return ONLY the body of the letter, without a header (name, address and date are added separately).
Start with "Dear Hiring Manager,".
End with a single "Sincerely," and do NOT add the name after it.
""".strip()

RESUME_EXTRACTION_PROMPT = f"""
You are an expert resume parser. Extract information from the resume text with high accuracy and prefer real, specific values over generic defaults.

RESUME TEXT TO ANALYZE:
{{RESUME_TEXT}}

Return a JSON object with exactly these keys:

{{
  "name": "Full name of the person",
  "email": "Email address",
  "phone": "Phone number (keep original format)",
  "location": "City, State or City, Country",
  "linkedin": "LinkedIn username only (not the full URL)",
  "skills": ["Technical and professional skills"],
  "experience": ["Job Title at Company (Dates) - key responsibilities and achievements"],
  "education": ["Degree in Major from Institution (Year) - additional details"],
  "summary": "Professional summary or objective statement"
}}

GUIDELINES:
- The name is usually at the top; never return a company name, job title or section header as the name.
- Keep phone formatting as written. Take the LinkedIn username from URLs like linkedin.com/in/username.
- Skills come from dedicated skills sections; avoid duplicates and generic terms.
- Keep quantified achievements in experience entries and include internships and contract work.
- Only extract information that is explicitly present. Every array item must be meaningful and non-empty.

DEFAULT VALUES (use only when the information is truly absent):
- name: "{DEFAULT_NAME}"
- email: "{DEFAULT_EMAIL}"
- phone: "{DEFAULT_PHONE}"
- location: "{DEFAULT_LOCATION}"
- linkedin: "{DEFAULT_LINKEDIN}"

Return only the JSON object with no additional text.
""".strip()


def format_resume_for_prompt(resume: ResumeRecord) -> str:
    return "\n".join(
        [
            f"Name: {resume.name}",
            f"Email: {resume.email}",
            f"Phone: {resume.phone}",
            f"Location: {resume.location}",
            f"LinkedIn: linkedin.com/in/{resume.linkedin_handle}",
            "",
            f"Professional Summary: {resume.summary}",
            "",
            f"Skills: {', '.join(resume.skills)}",
            "",
            f"Education: {'; '.join(resume.education_entries)}",
            "",
            f"Professional Experience: {'; '.join(resume.experience_entries)}",
        ]
    )


def build_extraction_prompt(resume_text: str) -> str:
    return RESUME_EXTRACTION_PROMPT.replace("{RESUME_TEXT}", resume_text)
