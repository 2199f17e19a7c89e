"""
Prompt templates for AI quiz generation.
Every prompt ends with the strict output-format block: the pipeline only
acts reliably on a JSON array of questions.
"""

import json
from typing import List, Dict, Sequence


QUIZ_SYSTEM_INSTRUCTION = (
    "You are an expert quiz generator. CRITICAL: You must use ONLY the actual course content "
    "provided in the user message, not general knowledge or assumptions. Base all questions on "
    "specific information, concepts, and details found in the provided course material. "
    "Attribute every question to its source section and reference that section in the explanation. "
    "Return valid JSON only."
)

SECTION_SYSTEM_INSTRUCTION = (
    "You are an expert quiz generator. CRITICAL: Base all questions ONLY on the specific course "
    "section content provided. Do not use general knowledge. Attribute every question to the "
    "section and reference it in the explanation. Return valid JSON only."
)

FINAL_OUTPUT_INSTRUCTION = "Return ONLY the JSON array, with no other text."


def _example_question(question_id: int = 1, section: str = "Course Section/Subtitle Name") -> Dict:
    return {
        "id": question_id,
        "text": "Question text referencing specific section",
        "section": section,
        "options": [
            {"id": 1, "text": "Option A", "isCorrect": False, "explanation": "Why this is wrong"},
            {"id": 2, "text": "Option B", "isCorrect": True,
             "explanation": "Detailed explanation referencing the course section and why this is correct"},
            {"id": 3, "text": "Option C", "isCorrect": False, "explanation": "Why this is wrong"},
            {"id": 4, "text": "Option D", "isCorrect": False, "explanation": "Why this is wrong"},
        ],
    }


def build_output_format_block(start_id: int = 1, section: str = "Course Section/Subtitle Name") -> str:
    """Strict output contract appended to every generation prompt"""
    example = json.dumps([_example_question(start_id, section)], indent=2)
    return f"""OUTPUT FORMAT (STRICT):
- Respond with a JSON array of question objects and nothing else: no markdown, no commentary.
- Each question has exactly 4 options and exactly one option with "isCorrect": true.
- The correct option's explanation must name the course section the answer comes from.

{example}

{FINAL_OUTPUT_INSTRUCTION}"""


# Default instruction set (also the built-in "Comprehensive" template)
DEFAULT_TEMPLATE_INSTRUCTIONS = """INSTRUCTIONS:
1. Content Analysis: First, identify and extract key concepts from each content section and subtitle within the course material
2. Section-Based Questions: Create {numQuestions} multiple-choice questions, ensuring questions are distributed across different course sections and subtitles
3. Question Attribution: Each question should:
   - Reference the specific course section/subtitle it's testing
   - Focus on important concepts from that particular section
   - Test comprehension rather than memorization
4. Answer Structure: Include 4 answer options for each question with only one correct answer
5. Detailed Explanations: Provide comprehensive explanations that:
   - Explain why the correct answer is right
   - Reference the specific course section/subtitle where the concept was covered
   - Briefly explain why incorrect options are wrong

Question Format:
```
Question X: [Question text]
Section: [Course Section/Subtitle Name]

A) [Option A]
B) [Option B]
C) [Option C]
D) [Option D]

Correct Answer: [Letter]
Explanation: [Detailed explanation referencing the course section and explaining the correct answer]
```

Requirements:
- Ensure questions cover different sections/subtitles proportionally
- Vary question difficulty levels
- Focus on practical application of concepts when possible
- Include the course section reference for each question"""

QUICK_ASSESSMENT_INSTRUCTIONS = (
    "Create {numQuestions} multiple-choice questions from the course content. Focus on key concepts "
    "and include brief explanations. Ensure questions test understanding rather than memorization."
)

POPULAR_TEMPLATES: List[Dict[str, str]] = [
    {
        "id": "popular_1",
        "name": "Comprehensive Section-Based Quiz",
        "description": "Detailed quiz generation with section references and explanations",
        "instructions": DEFAULT_TEMPLATE_INSTRUCTIONS,
    },
    {
        "id": "popular_2",
        "name": "Quick Assessment",
        "description": "Fast quiz generation for quick assessments",
        "instructions": QUICK_ASSESSMENT_INSTRUCTIONS,
    },
]


def apply_template_placeholders(
    instructions: str,
    num_questions: int,
    course_title: str,
    course_description: str,
    content: str,
) -> str:
    """Substitute the supported {placeholders}. Other braces are left untouched."""
    return (
        instructions
        .replace("{numQuestions}", str(num_questions))
        .replace("{courseTitle}", course_title)
        .replace("{courseDescription}", course_description or "")
        .replace("{contentForPrompt}", content)
    )


def build_default_quiz_prompt(
    course_title: str,
    course_description: str,
    content: str,
    num_questions: int
) -> str:
    """Build the built-in quiz prompt around formatted course content"""
    return f"""CRITICAL: You MUST use the actual course content provided below, NOT just the course title. Generate questions based on the specific concepts, details, and information contained within the course content sections.

INSTRUCTIONS:
1. Content Analysis: Thoroughly analyze the provided course content sections below. Extract key concepts, facts, procedures, and important details from the ACTUAL CONTENT TEXT.
2. Section-Based Questions: Create {num_questions} multiple-choice questions based ONLY on information found in the course content sections provided below.
3. Question Attribution: Each question MUST:
   - Be answerable using information from the provided course content
   - Reference specific details, concepts, or procedures mentioned in the content
   - Focus on important concepts from the actual course material (not general knowledge)
   - Test comprehension of the specific content provided
4. Answer Structure: Include 4 answer options for each question with only one correct answer
5. Detailed Explanations: Provide explanations that:
   - Reference the specific course section/subtitle where the information was found
   - Explain why the correct answer is right based on the provided material
   - Briefly explain why incorrect options are wrong

Requirements:
- Ensure questions cover different sections/subtitles proportionally
- Vary question difficulty levels

Course: "{course_title}"
Course Description: "{course_description}"

COURSE CONTENT SECTIONS (Base all questions on this specific content):
{content}

REMINDER: Generate questions based ONLY on the content above, not general knowledge about the course title.

{build_output_format_block()}"""


def build_custom_quiz_prompt(
    instructions: str,
    course_title: str,
    course_description: str,
    content: str,
    num_questions: int,
    start_id: int = 1
) -> str:
    """
    Wrap a user-supplied template so its requirements survive but the
    response still comes back as the JSON array the parser expects.
    """
    processed = apply_template_placeholders(
        instructions, num_questions, course_title, course_description, content
    )
    # Templates without {contentForPrompt} still need the material
    content_section = "" if "{contentForPrompt}" in instructions else f"""
COURSE CONTENT SECTIONS (Base all questions on this specific content):
{content}
"""

    return f"""Based on your detailed requirements, create {num_questions} questions from course "{course_title}".

{processed}
{content_section}
Follow your format requirements for content, section references and explanations, but return the result as JSON only.

{build_output_format_block(start_id)}"""


def build_section_quiz_prompt(
    section_title: str,
    course_title: str,
    key_terms: Sequence[str],
    content: str,
    num_questions: int,
    start_id: int = 1
) -> str:
    """Reduced single-section prompt used when content is generated in chunks"""
    return f"""Create {num_questions} questions for "{section_title}" from course "{course_title}".

Section: {section_title}
Key Terms: {', '.join(key_terms)}
Content: {content}

{build_output_format_block(start_id, section_title)}"""
