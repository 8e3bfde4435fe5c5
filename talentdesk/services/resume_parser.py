"""Resume text extraction and LLM parsing into a fixed schema."""

from io import BytesIO

import structlog
from anthropic import Anthropic, APIError
from pydantic import BaseModel, Field, ValidationError

from talentdesk.core.config import get_settings
from talentdesk.core.errors import ResumeParseError, ValidationFailed

logger = structlog.get_logger()

PARSER_PROMPT = """You are an expert recruitment data parser. Extract the candidate information from the resume text below and return it through the resume_parser tool.

1. Extract all contact information (name, email, phone, LinkedIn URL).
2. Calculate the total years of professional experience from the experience dates. Return only the number.
3. Summarize the resume in a short paragraph (max 100 words).
4. Extract all skills as a clean list of strings (e.g. ["Python", "SQL", "Scrum"]).
5. Map experience and education entries directly into their arrays."""

RESUME_TOOL = {
    "name": "resume_parser",
    "description": "Parses a resume and returns a structured JSON object.",
    "input_schema": {
        "type": "object",
        "properties": {
            "data": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "email": {"type": "string"},
                    "phone": {"type": "string"},
                    "linkedin_url": {"type": ["string", "null"]},
                    "summary": {"type": ["string", "null"]},
                    "total_years_experience": {"type": ["number", "null"]},
                    "most_recent_title": {"type": ["string", "null"]},
                    "most_recent_company": {"type": ["string", "null"]},
                    "skills": {"type": "array", "items": {"type": "string"}},
                    "education": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "institution": {"type": "string"},
                                "degree": {"type": "string"},
                                "year": {"type": ["number", "null"]},
                            },
                            "required": ["institution", "degree"],
                        },
                    },
                    "experience": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "title": {"type": "string"},
                                "company": {"type": "string"},
                                "start_date": {"type": "string"},
                                "end_date": {"type": ["string", "null"]},
                                "description_summary": {"type": ["string", "null"]},
                            },
                            "required": ["title", "company", "start_date"],
                        },
                    },
                },
                "required": ["name", "email", "phone", "skills"],
            }
        },
        "required": ["data"],
    },
}


class Education(BaseModel):
    institution: str
    degree: str
    year: int | None = None


class Experience(BaseModel):
    title: str
    company: str
    start_date: str
    end_date: str | None = None
    description_summary: str | None = None


class ResumeData(BaseModel):
    name: str
    email: str
    phone: str
    linkedin_url: str | None = None
    summary: str | None = None
    total_years_experience: float | None = None
    most_recent_title: str | None = None
    most_recent_company: str | None = None
    skills: list[str] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    experience: list[Experience] = Field(default_factory=list)


def extract_text(content: bytes, filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext == "pdf":
        import fitz

        doc = fitz.open(stream=content, filetype="pdf")
        text = "".join(page.get_text() for page in doc)
        doc.close()
        return text
    if ext == "docx":
        from docx import Document

        doc = Document(BytesIO(content))
        return "\n".join(para.text for para in doc.paragraphs)
    if ext == "txt":
        return content.decode("utf-8", errors="ignore")
    raise ValidationFailed("Resumes must be PDF, DOCX or plain text files.")


def parse_resume_text(text: str, client: Anthropic | None = None) -> ResumeData:
    settings = get_settings()
    text = (text or "").strip()
    if not text:
        raise ValidationFailed("No text could be extracted from this resume.")
    client = client or Anthropic(api_key=settings.ANTHROPIC_API_KEY)

    try:
        response = client.messages.create(
            model=settings.ANTHROPIC_MODEL,
            max_tokens=4096,
            tools=[RESUME_TOOL],
            tool_choice={"type": "tool", "name": "resume_parser"},
            messages=[
                {
                    "role": "user",
                    "content": f"{PARSER_PROMPT}\n\nRESUME TEXT:\n\n{text[: settings.RESUME_TEXT_MAX_CHARS]}",
                }
            ],
        )
    except APIError as e:
        logger.error("resume_parse_api_error", error=str(e))
        raise ResumeParseError("The resume parsing service is unavailable.") from e

    tool_call = next((block for block in response.content if block.type == "tool_use"), None)
    if tool_call is None:
        logger.error("resume_parse_no_tool_call", stop_reason=response.stop_reason)
        raise ResumeParseError("The resume parser did not return structured data.")

    try:
        data = ResumeData.model_validate(tool_call.input.get("data", tool_call.input))
    except ValidationError as e:
        logger.error("resume_parse_invalid", errors=e.error_count())
        raise ResumeParseError("The resume parser returned incomplete data.") from e

    logger.info("resume_parsed", skills=len(data.skills), experience=len(data.experience))
    return data


def parse_resume_file(content: bytes, filename: str, client: Anthropic | None = None) -> ResumeData:
    return parse_resume_text(extract_text(content, filename), client)
