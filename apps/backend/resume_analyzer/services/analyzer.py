"""Resume analysis pipeline with Gemini integration.

This module coordinates the analysis of one uploaded PDF:
extract text, build the prompt, call Gemini, pull the JSON object out of the
reply, sanitize it into the fixed schema and annotate it with metadata.
Each stage fails with a typed error; nothing is retried here.
"""

import json
import logging
import re
from datetime import datetime, timezone

from resume_analyzer.errors import MalformedAIResponse
from resume_analyzer.schemas.resume import AnalysisResult
from resume_analyzer.services.extractor import extract_text
from resume_analyzer.services.gemini import GeminiClient
from resume_analyzer.services.sanitizer import UntrustedPayload, sanitize_analysis

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


def build_analysis_prompt(resume_text: str) -> str:
    """Build the recruiter prompt embedding the resume text and output schema."""
    return f"""
You are an expert technical recruiter and career coach with 10+ years of experience. Analyze the following resume text and extract information into a valid JSON object.

IMPORTANT INSTRUCTIONS:
1. Return ONLY a valid JSON object - no markdown, no explanations, no additional text
2. If information is not available, use null for strings/objects and empty arrays [] for arrays
3. Be thorough but concise in your analysis
4. For rating, consider: formatting, content quality, skills relevance, experience clarity, achievements quantification
5. Provide actionable improvement suggestions

Resume Text:
\"\"\"
{resume_text}
\"\"\"

Return a JSON object with this EXACT structure:

{{
  "name": "Full name from resume or null",
  "email": "Email address or null",
  "phone": "Phone number or null",
  "linkedin_url": "LinkedIn profile URL or null",
  "portfolio_url": "Portfolio/website URL or null",
  "summary": "Professional summary/objective or null",
  "work_experience": [
    {{
      "role": "Job title",
      "company": "Company name",
      "duration": "Employment duration (e.g., 'Jan 2020 - Present')",
      "description": ["Key responsibility 1", "Achievement 2", "Task 3"]
    }}
  ],
  "education": [
    {{
      "degree": "Degree name and field",
      "institution": "University/College name",
      "graduation_year": "Year or expected year"
    }}
  ],
  "technical_skills": ["skill1", "skill2", "skill3"],
  "soft_skills": ["skill1", "skill2", "skill3"],
  "projects": [
    {{
      "name": "Project name",
      "description": "Brief project description",
      "technologies": ["tech1", "tech2"]
    }}
  ],
  "certifications": [
    {{
      "name": "Certification name",
      "issuer": "Issuing organization",
      "year": "Year obtained"
    }}
  ],
  "resume_rating": 7,
  "improvement_areas": "Specific areas for improvement with actionable advice. Include suggestions for better formatting, missing sections, weak descriptions, lack of quantified achievements, etc.",
  "upskill_suggestions": ["skill1 to learn", "technology2 to master", "certification3 to pursue"]
}}

Remember: Return ONLY the JSON object, nothing else.
"""


def extract_json_from_response(response: str) -> UntrustedPayload:
    """Extract the JSON object from a model reply.

    Strips code fences, then treats everything between the first ``{`` and
    the last ``}`` as the payload. Models sometimes wrap JSON in commentary.

    Args:
        response: Raw model response text

    Returns:
        The decoded object, still untrusted

    Raises:
        MalformedAIResponse: No brace pair, invalid JSON, or not an object
    """
    cleaned = _CODE_FENCE.sub("", response.strip())

    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise MalformedAIResponse("AI did not return a valid JSON response.")

    try:
        data = json.loads(cleaned[first:last + 1])
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing failed: {e}")
        logger.error(f"Response: {cleaned[:500]}")
        raise MalformedAIResponse()

    if not isinstance(data, dict):
        raise MalformedAIResponse()
    return UntrustedPayload(data)


async def analyze_resume(
    pdf_bytes: bytes,
    file_name: str,
    client: GeminiClient,
) -> AnalysisResult:
    """Run the full analysis pipeline for one uploaded PDF.

    Args:
        pdf_bytes: Raw PDF file content
        file_name: Original file name
        client: AI client used for the analysis call

    Returns:
        AnalysisResult with sanitized fields and processing metadata

    Raises:
        ExtractionError: Empty, short, corrupt or unreadable PDF
        AIUnavailable / AIRateLimited / AITimeout: AI call failed
        MalformedAIResponse: Reply did not contain a JSON object
    """
    logger.info(f"Starting resume analysis for: {file_name}")

    # Step 1: Extract text
    resume_text = await extract_text(pdf_bytes, file_name)

    # Step 2: Prompt and invoke
    prompt = build_analysis_prompt(resume_text)
    logger.info(f"Sending prompt to AI ({len(prompt)} characters)")
    response = await client.generate(prompt)
    logger.info(f"Received AI response ({len(response)} characters)")

    # Step 3: Parse
    payload = extract_json_from_response(response)

    # Step 4: Sanitize
    analysis = sanitize_analysis(payload)

    # Step 5: Annotate
    result = AnalysisResult(
        **analysis.model_dump(),
        processed_at=datetime.now(timezone.utc),
        file_name=file_name,
        text_length=len(resume_text),
    )
    logger.info(
        f"Resume analysis completed for {file_name}: rating {result.resume_rating}/10"
    )
    return result
