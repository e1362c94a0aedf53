"""Prompts and request assembly for answer key generation and grading."""

import base64
import json
from typing import List, Sequence, Union

from pydantic_ai import BinaryContent

from .models import AnswerKeyItem, EncodedFile

UserContent = Union[str, BinaryContent]

SYSTEM_PROMPT = (
    "You are the Booklet Review System, an expert autonomous grader of "
    "handwritten and printed exam booklets. Follow the instructions in each "
    "request exactly and return only the requested structured output."
)

KEY_SYNTHESIS_INSTRUCTIONS = """OBJECTIVE:
Analyze the input questions (text/images/PDF) and generate a robust Answer Key for automated grading.

REQUIREMENTS:
1. Identify: Extract every question clearly from the provided text or files.
2. Ideal Answer: Generate a complete, step-by-step perfect solution.
   - Numerical: Show Formula + Steps + Result.
   - Coding: Optimized clean code.
   - Theory: Key concepts and required keywords.
3. Dynamic Parameters: Create 2-5 granular evaluation parameters per question.
   - CRITICAL: Design parameters to enable PARTIAL CREDIT (e.g. use "Formula", "Method",
     "Calculation", "Final Answer" instead of just "Correctness").
4. Weightage: Assign logical marks to each parameter.
5. Type: Classify as 'Numerical', 'Theory', 'Coding', 'Diagram', or 'Other'.

OUTPUT:
A list of answer key items, one per question."""

GRADING_INSTRUCTIONS = """CORE DIRECTIVE: PREVENT FALSE ZEROES AND ENSURE ACCURACY
You are evaluating a student's answer booklet. Make every effort to find their answer and award legitimate marks.

RULES:
1. OCR & Extraction: The input is a raw document (PDF/Image). Read all handwritten or printed text yourself.
2. Answer Mapping: The student might not number answers clearly. Use context matching to map
   student text to the correct question number.
3. Partial Credit & Scoring:
   - DO NOT award 0 just because the final answer is wrong.
   - Award marks for correct formulas, correct logic/approach, valid definitions and partial steps.
   - total_score must be the sum of the awarded parameter scores.
   - max_score must be the sum of the parameter weightages from the answer key (total marks available).
   - Only award 0 if the answer is completely blank or completely unrelated.
4. Evaluation: Compare the extracted student response against the ANSWER KEY using its PARAMETERS.
5. Remark: Provide a specific, constructive reason for the score.

ANSWER KEY & PARAMETERS:
{answer_key}

OUTPUT:
The student's evaluation results."""


def to_binary_content(file: EncodedFile) -> BinaryContent:
    return BinaryContent(data=base64.b64decode(file.content), media_type=file.mime_type)


def serialize_answer_key(answer_key: Sequence[AnswerKeyItem]) -> str:
    return json.dumps([item.model_dump() for item in answer_key], indent=2)


def build_key_request(question_text: str, question_files: Sequence[EncodedFile]) -> List[UserContent]:
    """Assemble the user content for answer key generation."""
    parts: List[UserContent] = [KEY_SYNTHESIS_INSTRUCTIONS]
    if question_text.strip():
        parts.append(f"Question Text Input:\n{question_text}")
    parts.extend(to_binary_content(f) for f in question_files)
    return parts


def build_grading_request(file: EncodedFile, answer_key: Sequence[AnswerKeyItem]) -> List[UserContent]:
    """Assemble the user content for grading one booklet."""
    return [
        GRADING_INSTRUCTIONS.format(answer_key=serialize_answer_key(answer_key)),
        f"Filename: {file.filename}",
        to_binary_content(file),
    ]
