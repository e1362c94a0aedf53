"""Pydantic models for answer keys and booklet grading results."""

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from typing import List, Literal

QuestionType = Literal['Numerical', 'Theory', 'Coding', 'Diagram', 'Other']


class EvaluationParameter(BaseModel):
    """One partial-credit component of a question's rubric."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Name of the evaluation parameter, e.g. 'Formula' or 'Final Answer'")
    weightage: float = Field(description="Maximum marks for this parameter")


class AnswerKeyItem(BaseModel):
    """Ideal answer and rubric for a single question."""
    model_config = ConfigDict(frozen=True)

    question_no: int = Field(description="Question number as it appears on the paper")
    question_text: str = Field(description="Full text of the question")
    type: QuestionType = Field(description="Kind of question")
    ideal_answer: str = Field(description="Complete, step-by-step model answer")
    parameters: List[EvaluationParameter] = Field(
        description="2-5 evaluation parameters that together allow partial credit"
    )

    @property
    def max_score(self) -> float:
        """Total marks available for this question."""
        return sum(p.weightage for p in self.parameters)


AnswerKey = List[AnswerKeyItem]


class ParameterScore(BaseModel):
    """Marks awarded for one evaluation parameter."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Name of the evaluation parameter from the answer key")
    score: float = Field(description="Marks awarded for this parameter")


class GradedQuestion(BaseModel):
    """Evaluation of one question in a student's booklet."""
    model_config = ConfigDict(frozen=True)

    question_no: int = Field(description="Question number from the answer key")
    parameter_scores: List[ParameterScore] = Field(description="Marks awarded per evaluation parameter")
    total_score: float = Field(description="Sum of parameter_scores (marks obtained)")
    max_score: float = Field(description="Sum of parameter weightages (marks available)")
    remark: str = Field(description="Specific, constructive reason for the score")


class StudentResult(BaseModel):
    """All question evaluations for one booklet."""
    model_config = ConfigDict(frozen=True)

    student_id: str = Field(description="Extract student name/ID if visible, otherwise use filename")
    evaluations: List[GradedQuestion] = Field(description="One evaluation per answered question")
    _failed: bool = PrivateAttr(default=False)

    @classmethod
    def failed(cls, student_id: str, remark: str) -> "StudentResult":
        """Build the placeholder result recorded when a booklet could not be graded."""
        result = cls(
            student_id=student_id,
            evaluations=[
                GradedQuestion(
                    question_no=0,
                    parameter_scores=[],
                    total_score=0,
                    max_score=0,
                    remark=remark,
                )
            ],
        )
        result._failed = True
        return result

    @property
    def is_failure(self) -> bool:
        """True if this is a placeholder built by ``failed``."""
        return self._failed

    @property
    def total_score(self) -> float:
        return sum(e.total_score for e in self.evaluations)

    @property
    def max_score(self) -> float:
        return sum(e.max_score for e in self.evaluations)


class EncodedFile(BaseModel):
    """A file prepared for sending to the model."""
    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="Base name of the source file")
    content: str = Field(description="Base64-encoded file contents")
    mime_type: str = Field(description="Media type of the file")
