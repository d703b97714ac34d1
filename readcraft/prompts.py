"""Prompt templates for passage, teacher-notes and question generation."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from readcraft.models import GenerationRequest, Standard

FORMATTING_REQUIREMENTS = """\
IMPORTANT FORMATTING REQUIREMENTS:
- Each paragraph must be numbered, starting with "1" for the first paragraph
- Each numbered paragraph should be indented after the number
- Follow this exact format for each paragraph: "[Number]\\t[Paragraph text]"
- Start a new paragraph with a new number for each main idea or scene change
- Separate paragraphs with a blank line
- Include any necessary footnotes at the end if special terms need explanation"""

PASSAGE_JSON_EXAMPLE = """\
{
  "title": "The title of the passage",
  "content": "1\\tFirst paragraph text goes here, properly indented after the number...\\n\\n2\\tSecond paragraph text goes here..."
}"""

NOTES_JSON_EXAMPLE = """\
{
  "notes": "The full text of the teacher notes..."
}"""

PASSAGE_PROMPT = """\
Generate an educational text passage for grade {grade} students that aligns \
with the following English Language Arts standards:

{standards}

The passage should be:
- {text_type_phrase}
{topic_line}- Approximately {word_count} words in length
- At a reading level that is {level_phrase} grade {grade} level
- Age-appropriate and engaging for students
- Clearly demonstrating the listed standards
- Include a title for the passage{title_hint}

{formatting}

Please format your response as a JSON object with title and content fields, like this:
{json_example}
"""

MODIFY_PASSAGE_PROMPT = """\
Modify an existing educational text passage according to specific instructions \
while maintaining alignment with these English Language Arts standards:

{standards}

{custom_context}

{formatting}

Please format your response as a JSON object with title and content fields, like this:
{json_example}
"""

TEACHER_NOTES_PROMPT = """\
Based on the following passage and ELA standards, create detailed teacher notes.

PASSAGE:
\"\"\"
{passage}
\"\"\"

STANDARDS:
{standards}

The teacher notes should include:
1. Key concepts and vocabulary in the passage
2. How the passage aligns with each standard
3. Suggested discussion questions
4. Potential challenges students might face with the content
5. Additional teaching tips or extension activities

Format your response as a JSON object with a notes field, like this:
{json_example}
"""

QUESTIONS_PROMPT = """\
Based on the following passage for grade {grade_level} students, generate assessment questions.

PASSAGE:
\"\"\"
{passage}
\"\"\"

STANDARDS TO COVER:
{standards}

QUESTION RIGOR LEVEL: {rigor_level} out of 4
{rigor_description}

{format_instructions}

Format your response as a JSON object with a "questions" array, with the following structure:
{json_example}
"""

QUESTION_FORMAT_INSTRUCTIONS = {
    "multiple-choice": """\
Generate {count} multiple-choice questions based on the passage.
- Each question should have 4 options (A, B, C, D)
- Only one option should be correct
- Include which standard each question aligns with
- Provide a brief explanation for the correct answer""",
    "multiple-select": """\
Generate {count} multiple-select questions where students must select multiple correct answers.
- Each question should have 6 options (A, B, C, D, E, F)
- Exactly 2 options should be correct for each question
- Set correctCount to the number of correct options
- Include which standard each question aligns with
- Provide a brief explanation for why the correct answers are right""",
    "open-response": """\
Generate {count} open-response (constructed response) questions.
- Each question should require students to write a paragraph or more
- Include which standard each question aligns with
- Provide a sample response that would earn full credit
- Include scoring guidelines for teachers""",
    "two-part": """\
Generate {count} two-part questions following the state test format.
- Each question should have an overall context/prompt
- Part A should be a multiple-choice question with 4 options (A, B, C, D) and only one correct answer
- Part B should be a follow-up question that builds on Part A
- For rigor levels 1-2: Part B should be multiple-choice with 4 options
- For rigor levels 3-4: Part B should be multiple-select with 6 options (A, B, C, D, E, F) and exactly 2 correct answers
- Include which standard each question aligns with
- Provide a brief explanation for the correct answers""",
}

RIGOR_DESCRIPTIONS = {
    1: "These should be basic recall and understanding questions at DOK level 1, "
       "focusing on identifying explicitly stated information in the text.",
    2: "These should be application and analysis questions at DOK level 2, "
       "requiring students to interpret information from the text.",
    3: "These should be analysis and evaluation questions at DOK level 3, "
       "requiring students to draw conclusions and make inferences from the text.",
    4: "These should be synthesis and extended thinking questions at DOK level 4, "
       "requiring students to connect ideas across texts or apply concepts in new contexts.",
}

RESPONSE_FORMAT_EXAMPLES = {
    "multiple-choice": """\
{
  "questions": [
    {
      "id": "mc1",
      "type": "multiple-choice",
      "question": "What is the main idea of the passage?",
      "options": [
        { "id": "A", "text": "Option text", "isCorrect": false },
        { "id": "B", "text": "Option text", "isCorrect": false },
        { "id": "C", "text": "Option text", "isCorrect": true },
        { "id": "D", "text": "Option text", "isCorrect": false }
      ],
      "standardId": "The relevant standard ID",
      "explanation": "Explanation of why the answer is correct"
    }
  ]
}""",
    "multiple-select": """\
{
  "questions": [
    {
      "id": "ms1",
      "type": "multiple-select",
      "question": "Select TWO details from the passage that support the main idea.",
      "options": [
        { "id": "A", "text": "Option text", "isCorrect": true },
        { "id": "B", "text": "Option text", "isCorrect": false },
        { "id": "C", "text": "Option text", "isCorrect": false },
        { "id": "D", "text": "Option text", "isCorrect": false },
        { "id": "E", "text": "Option text", "isCorrect": true },
        { "id": "F", "text": "Option text", "isCorrect": false }
      ],
      "standardId": "The relevant standard ID",
      "explanation": "Explanation of why the answers are correct",
      "correctCount": 2
    }
  ]
}""",
    "open-response": """\
{
  "questions": [
    {
      "id": "or1",
      "type": "open-response",
      "question": "Explain how the author develops the theme of...",
      "standardId": "The relevant standard ID",
      "sampleResponse": "A sample response that would receive full credit",
      "scoringGuidelines": "Guidelines for scoring student responses"
    }
  ]
}""",
    "two-part": """\
{
  "questions": [
    {
      "id": "tp1",
      "type": "two-part",
      "question": "This question has two parts. Answer Part A and then Part B.",
      "standardId": "The relevant standard ID",
      "explanation": "Explanation of why the answers are correct",
      "partA": {
        "question": "Part A: What is the main idea of paragraph 3?",
        "options": [
          { "id": "A", "text": "Option text", "isCorrect": false },
          { "id": "B", "text": "Option text", "isCorrect": true },
          { "id": "C", "text": "Option text", "isCorrect": false },
          { "id": "D", "text": "Option text", "isCorrect": false }
        ]
      },
      "partB": {
        "question": "Part B: Which detail from the text best supports your answer to Part A?",
        "options": [
          { "id": "A", "text": "Option text", "isCorrect": false },
          { "id": "B", "text": "Option text", "isCorrect": false },
          { "id": "C", "text": "Option text", "isCorrect": true },
          { "id": "D", "text": "Option text", "isCorrect": false }
        ],
        "isMultiSelect": false
      }
    }
  ]
}""",
}

# Part B as multiple-select, shown for two-part questions at rigor 3-4
TWO_PART_MULTI_SELECT_EXAMPLE = """\
{
  "questions": [
    {
      "id": "tp1",
      "type": "two-part",
      "question": "This question has two parts. Answer Part A and then Part B.",
      "standardId": "The relevant standard ID",
      "explanation": "Explanation of why the answers are correct",
      "partA": {
        "question": "Part A: What can the reader infer about the main character?",
        "options": [
          { "id": "A", "text": "Option text", "isCorrect": false },
          { "id": "B", "text": "Option text", "isCorrect": false },
          { "id": "C", "text": "Option text", "isCorrect": false },
          { "id": "D", "text": "Option text", "isCorrect": true }
        ]
      },
      "partB": {
        "question": "Part B: Select TWO details from the text that best support your answer to Part A.",
        "options": [
          { "id": "A", "text": "Option text", "isCorrect": true },
          { "id": "B", "text": "Option text", "isCorrect": false },
          { "id": "C", "text": "Option text", "isCorrect": false },
          { "id": "D", "text": "Option text", "isCorrect": true },
          { "id": "E", "text": "Option text", "isCorrect": false },
          { "id": "F", "text": "Option text", "isCorrect": false }
        ],
        "isMultiSelect": true,
        "correctCount": 2
      }
    }
  ]
}"""

MODIFICATION_INSTRUCTIONS = {
    "revise": (
        "Please revise this passage to improve clarity and readability while maintaining "
        "the current length, complexity level, and educational standards alignment. "
        "Focus on enhancing flow, word choice, and engagement."
    ),
    "stretch": (
        "Please expand this passage by adding more details, descriptions, and content. "
        "Maintain the same complexity level and educational standards alignment, but make "
        "the passage approximately 30% longer."
    ),
    "shrink": (
        "Please condense this passage to make it more concise while preserving the key "
        "content and alignment to educational standards. Aim to reduce the length by "
        "approximately 30% without losing essential information or lowering the complexity level."
    ),
    "level-up": (
        "Please increase the complexity of this passage by elevating vocabulary, sentence "
        "structure, and conceptual difficulty. Maintain the same length and educational "
        "standards alignment, but make the passage more challenging and sophisticated for students."
    ),
    "level-down": (
        "Please decrease the complexity of this passage by simplifying vocabulary, sentence "
        "structure, and concepts. Maintain the same length and educational standards alignment, "
        "but make the passage more accessible for students who need additional support."
    ),
}


def format_standards(standards: list[Standard]) -> str:
    return "\n".join(f"{s.code}: {s.description}" for s in standards)


def reading_level_phrase(level: str) -> str:
    if level == "below":
        return "slightly below"
    if level == "above":
        return "slightly above"
    return "at"


def default_title(text_type: str, topic: str | None = None) -> str:
    """Title used when the model gives none."""
    if topic and topic != "maintain":
        return topic
    return "A Short Story" if text_type == "narrative" else "Informational Text"


def resolve_instruction(instruction: str) -> str:
    """Map a preset key (``stretch``, ``level-up`` ...) to its text; pass custom text through."""
    key = instruction.strip().lower()
    return MODIFICATION_INSTRUCTIONS.get(key, instruction.strip())


def build_modification_context(title: str, passage: str, instruction: str) -> str:
    return (
        f'Existing title: "{title}". '
        f'Existing passage: "{passage}". '
        f"Modification instruction: {resolve_instruction(instruction)}"
    )


def build_passage_prompt(request: GenerationRequest, standards: list[Standard]) -> str:
    if request.custom_context:
        return MODIFY_PASSAGE_PROMPT.format(
            standards=format_standards(standards),
            custom_context=request.custom_context,
            formatting=FORMATTING_REQUIREMENTS,
            json_example=PASSAGE_JSON_EXAMPLE,
        )

    if request.text_type == "narrative":
        text_type_phrase = "A narrative text (story)"
    else:
        text_type_phrase = "An informational text (non-fiction)"
    topic_line = f'- About the topic: "{request.topic}"\n' if request.topic else ""
    return PASSAGE_PROMPT.format(
        grade=request.grade_id,
        standards=format_standards(standards),
        text_type_phrase=text_type_phrase,
        topic_line=topic_line,
        word_count=request.word_count,
        level_phrase=reading_level_phrase(request.reading_level),
        title_hint=" that relates to the given topic" if request.topic else "",
        formatting=FORMATTING_REQUIREMENTS,
        json_example=PASSAGE_JSON_EXAMPLE,
    )


def build_teacher_notes_prompt(standards: list[Standard], passage: str) -> str:
    return TEACHER_NOTES_PROMPT.format(
        passage=passage,
        standards=format_standards(standards),
        json_example=NOTES_JSON_EXAMPLE,
    )


def response_format_example(question_type: str, rigor_level: int = 2) -> str:
    if question_type == "two-part" and rigor_level >= 3:
        return TWO_PART_MULTI_SELECT_EXAMPLE
    return RESPONSE_FORMAT_EXAMPLES[question_type]


def build_questions_prompt(
    passage: str,
    question_type: str,
    standards: list[Standard],
    count: int,
    grade_level: str,
    rigor_level: int = 2,
) -> str:
    if question_type not in QUESTION_FORMAT_INSTRUCTIONS:
        raise ValueError(f"Unknown question type: {question_type}")
    if rigor_level not in RIGOR_DESCRIPTIONS:
        raise ValueError(f"Rigor level must be 1-4 (got {rigor_level})")
    return QUESTIONS_PROMPT.format(
        grade_level=grade_level,
        passage=passage,
        standards=format_standards(standards),
        rigor_level=rigor_level,
        rigor_description=RIGOR_DESCRIPTIONS[rigor_level],
        format_instructions=QUESTION_FORMAT_INSTRUCTIONS[question_type].format(count=count),
        json_example=response_format_example(question_type, rigor_level),
    )
