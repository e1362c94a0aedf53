"""CSV export of grading results, one row per student per question."""

import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Sequence, Union

from .models import AnswerKeyItem, StudentResult

LOG = logging.getLogger(__name__)

LEADING_COLUMNS = ['student_id', 'question_no']
TRAILING_COLUMNS = ['total_score', 'total_marks_obtained', 'total_marks_available', 'remark']


def max_parameter_count(answer_key: Sequence[AnswerKeyItem]) -> int:
    """Largest number of evaluation parameters on any question in the key."""
    return max((len(item.parameters) for item in answer_key), default=0)


def report_header(max_params: int) -> List[str]:
    header = list(LEADING_COLUMNS)
    for i in range(1, max_params + 1):
        header.extend([f'parameter_{i}_name', f'parameter_{i}_marks'])
    header.extend(TRAILING_COLUMNS)
    return header


def _number(value: Union[int, float]) -> Union[int, float]:
    """Write whole marks as 5 rather than 5.0."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def generate_report(results: Sequence[StudentResult], answer_key: Sequence[AnswerKeyItem]) -> str:
    """
    Flatten grading results into CSV text.

    Every row has the same width: parameter columns are sized by the question
    with the most parameters in the answer key, and evaluations with fewer
    parameter scores are padded with empty fields. Text fields are quoted,
    numbers are not.

    Args:
        results: Student results in report order
        answer_key: Answer key the results were graded against

    Returns:
        CSV text with a header row and one row per evaluated question
    """
    max_params = max_parameter_count(answer_key)
    output = io.StringIO()

    csv.writer(output, lineterminator='\n').writerow(report_header(max_params))
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')

    for student in results:
        for evaluation in student.evaluations:
            row: list = [student.student_id, evaluation.question_no]
            for i in range(max_params):
                if i < len(evaluation.parameter_scores):
                    param = evaluation.parameter_scores[i]
                    row.extend([param.name, _number(param.score)])
                else:
                    row.extend(['', ''])
            row.extend([
                _number(evaluation.total_score),
                _number(evaluation.total_score),
                _number(evaluation.max_score),
                evaluation.remark,
            ])
            writer.writerow(row)

    return output.getvalue()


def save_report(results: Sequence[StudentResult], answer_key: Sequence[AnswerKeyItem],
                output_path: Path):
    """
    Save the CSV report to a file.

    Args:
        results: Student results in report order
        answer_key: Answer key the results were graded against
        output_path: Path of the CSV file to write
    """
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        f.write(generate_report(results, answer_key))
    LOG.info(f"Report saved to {output_path}")


def summarize_results(results: Sequence[StudentResult]) -> Dict[str, int]:
    """Count students, failed booklets and report rows."""
    failed = [r for r in results if r.is_failure]
    return {
        'students': len(results),
        'graded': len(results) - len(failed),
        'failed': len(failed),
        'rows': sum(len(r.evaluations) for r in results),
    }
