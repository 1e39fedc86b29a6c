import json
import os
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("ANALYTICS_ENABLED", "0")

from app.core.errors import ConfigurationError, ErrorCategory, UpstreamServiceError  # noqa: E402
from app.schemas.resume import DEFAULT_EMAIL, PLACEHOLDER_EXPERIENCE, ResumeRecord  # noqa: E402
from app.services.cover_letter import (  # noqa: E402
    DEFAULT_COMPANY,
    DEFAULT_POSITION,
    GENERIC_FAILURE_MESSAGE,
    build_cover_letter_prompt,
    clean_cover_letter,
    extract_company_name,
    extract_position_title,
    generate_cover_letter,
)
from app.services.resume_parser import (  # noqa: E402
    ResumeExtractionError,
    extract_json_object,
    fallback_extract,
    parse_resume_text,
)

RESUME_TEXT = (
    "Jane Doe\n"
    "jane@example.com | (555) 123-4567\n"
    "Austin, TX\n"
    "linkedin.com/in/janedoe\n"
    "Senior engineer working with Python and Docker."
)


class FakeAIClient:
    def __init__(self, reply: str = "", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class ResumeParserTests(unittest.IsolatedAsyncioTestCase):
    async def test_model_json_becomes_resume_record(self):
        reply = "Here you go:\n" + json.dumps(
            {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "linkedin": "janedoe",
                "skills": ["Python", " ", "Docker"],
                "experience": ["Senior Engineer at Acme (2020-2023)"],
            }
        )
        client = FakeAIClient(reply)

        outcome = await parse_resume_text(RESUME_TEXT, client=client)

        self.assertFalse(outcome.used_fallback)
        self.assertEqual(outcome.resume.linkedin_handle, "janedoe")
        self.assertEqual(outcome.resume.skills, ["Python", "Docker"])
        self.assertEqual(outcome.resume.education_entries, [])
        self.assertIn(RESUME_TEXT, client.prompts[0])

    async def test_unreadable_reply_uses_pattern_fallback(self):
        outcome = await parse_resume_text(RESUME_TEXT, client=FakeAIClient("I cannot help with that."))

        self.assertTrue(outcome.used_fallback)
        self.assertEqual(outcome.resume.name, "Jane Doe")
        self.assertEqual(outcome.resume.email, "jane@example.com")
        self.assertIn("The AI response could not be read.", outcome.warnings)

    async def test_unknown_model_failure_uses_fallback(self):
        client = FakeAIClient(error=RuntimeError("model overloaded"))
        outcome = await parse_resume_text(RESUME_TEXT, client=client)
        self.assertTrue(outcome.used_fallback)

    async def test_auth_and_network_failures_propagate(self):
        with self.assertRaises(UpstreamServiceError) as ctx:
            await parse_resume_text(RESUME_TEXT, client=FakeAIClient(error=RuntimeError("API key not valid")))
        self.assertEqual(ctx.exception.category, ErrorCategory.AUTH_QUOTA)

        with self.assertRaises(UpstreamServiceError) as ctx:
            await parse_resume_text(RESUME_TEXT, client=FakeAIClient(error=TimeoutError("read timeout")))
        self.assertEqual(ctx.exception.category, ErrorCategory.NETWORK)

    async def test_missing_configuration_is_not_swallowed(self):
        client = FakeAIClient(error=ConfigurationError("GEMINI_API_KEY is missing."))
        with self.assertRaises(ConfigurationError):
            await parse_resume_text(RESUME_TEXT, client=client)

    async def test_empty_text_skips_the_model(self):
        client = FakeAIClient("{}")
        outcome = await parse_resume_text("   \n", client=client)

        self.assertTrue(outcome.used_fallback)
        self.assertEqual(client.prompts, [])
        self.assertEqual(outcome.resume.email, DEFAULT_EMAIL)

    def test_extract_json_object_rejects_non_objects(self):
        self.assertEqual(extract_json_object('noise {"name": "A"} noise'), {"name": "A"})
        with self.assertRaises(ResumeExtractionError):
            extract_json_object("no json")
        with self.assertRaises(ResumeExtractionError):
            extract_json_object("{broken: json}")

    def test_fallback_extract_reads_contact_details(self):
        resume = fallback_extract(RESUME_TEXT)

        self.assertEqual(resume.phone, "(555) 123-4567")
        self.assertEqual(resume.location, "Austin, TX")
        self.assertEqual(resume.linkedin_handle, "janedoe")
        self.assertIn("Python", resume.skills)
        self.assertEqual(resume.experience_entries, PLACEHOLDER_EXPERIENCE)


class CoverLetterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.resume = ResumeRecord(
            name="Jane Doe",
            email="jane@example.com",
            skills=["Python", "SQL"],
            experience_entries=["Senior Engineer at Acme (2020-2023)"],
        )

    def test_clean_cover_letter_normalizes_sign_off(self):
        raw = (
            "Dear Hiring Manager,\n\nI saw this role on [Platform].\n\n\n\n"
            "Thank you.\n\nSincerely,\nSincerely,\nJane Doe"
        )
        letter = clean_cover_letter(raw, "Jane Doe")

        self.assertEqual(letter.count("Sincerely,"), 1)
        self.assertTrue(letter.endswith("Sincerely,\nJane Doe"))
        self.assertNotIn("[", letter)
        self.assertNotIn("\n\n\n", letter)

    def test_clean_cover_letter_appends_missing_sign_off(self):
        letter = clean_cover_letter("Dear Hiring Manager,\n\nThanks.", "Jane Doe")
        self.assertTrue(letter.endswith("Thanks.\n\nSincerely,\nJane Doe"))

    def test_company_and_position_extraction(self):
        description = "Company: Acme Corp\nWe are hiring a Senior Backend Engineer to build APIs."
        self.assertEqual(extract_company_name(description), "Acme Corp")
        self.assertEqual(extract_position_title(description), "Senior Backend Engineer")
        self.assertEqual(extract_company_name("Come join Initech and build things."), "Initech")
        self.assertEqual(extract_position_title("Title: Data Analyst"), "Data Analyst")

    def test_extraction_defaults(self):
        self.assertEqual(extract_company_name("we build things"), DEFAULT_COMPANY)
        self.assertEqual(extract_position_title("we build things"), DEFAULT_POSITION)

    def test_custom_prompt_placeholders_are_filled(self):
        prompt = build_cover_letter_prompt(self.resume, "Build APIs", "Resume: {RESUME_DATA}\nJob: {JOB_DESCRIPTION}")

        self.assertIn("Name: Jane Doe", prompt)
        self.assertTrue(prompt.endswith("Job: Build APIs"))

    async def test_generate_returns_cleaned_letter(self):
        client = FakeAIClient("Dear Hiring Manager,\n\nI am a great fit.\n\nSincerely,")
        letter = await generate_cover_letter(self.resume, "Python role", client=client)

        self.assertTrue(letter.endswith("Sincerely,\nJane Doe"))
        self.assertIn("Python role", client.prompts[0])

    async def test_generate_failure_uses_generic_message(self):
        client = FakeAIClient(error=RuntimeError("model returned nothing"))
        with self.assertRaises(UpstreamServiceError) as ctx:
            await generate_cover_letter(self.resume, "Python role", client=client)

        self.assertEqual(ctx.exception.category, ErrorCategory.UNKNOWN)
        self.assertEqual(str(ctx.exception), GENERIC_FAILURE_MESSAGE)


if __name__ == "__main__":
    unittest.main()
