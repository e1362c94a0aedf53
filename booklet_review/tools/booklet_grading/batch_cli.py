#!/usr/bin/env python3
"""Command-line interface for grading a batch of answer booklets."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Tuple

from booklet_review.libs.config_loader import get_config, load_all_configs
from .backend import GradingBackend, create_backend
from .batch_grader import BatchGrader
from .errors import BookletReviewError
from .grader import SubmissionGrader
from .key_cli import add_question_arguments, has_question_input, print_answer_key
from .key_synthesizer import AnswerKeySynthesizer, load_answer_key, load_question_inputs, save_answer_key
from .models import AnswerKey, StudentResult
from .report import save_report, summarize_results

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)


async def prepare_and_grade_async(args: argparse.Namespace,
                                  backend: GradingBackend,
                                  batch_grader: BatchGrader,
                                  booklet_files: List[Path]) -> Tuple[AnswerKey, List[StudentResult]]:
    """
    Load or generate the answer key, then grade every booklet.

    Both steps share one event loop so the model client is reused.

    Raises:
        BookletReviewError, OSError, ValueError: If the answer key cannot be prepared
    """
    if args.answer_key is not None:
        answer_key = load_answer_key(args.answer_key)
        LOG.info(f"Loaded answer key with {len(answer_key)} questions from {args.answer_key}")
    else:
        question_text, question_files = load_question_inputs(
            args.questions_text, args.questions_file, args.question_paper
        )
        answer_key = await AnswerKeySynthesizer(backend).synthesize_async(question_text, question_files)
        print_answer_key(answer_key)
        if args.save_answer_key:
            save_answer_key(answer_key, args.save_answer_key)

    LOG.info(f"Grading {len(booklet_files)} booklets against {len(answer_key)} questions")
    results = await batch_grader.grade_all_async(booklet_files, answer_key)
    return answer_key, results


def main():
    """Main entry point for grade-booklets command."""
    parser = argparse.ArgumentParser(
        description='Grade scanned answer booklets against an answer key and export a CSV report',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Grade every PDF/image in a directory with a saved answer key
  grade-booklets --answer-key answer_key.yaml --booklets-dir booklets/

  # Build the key from the question paper first, then grade
  grade-booklets --question-paper exam.pdf --booklets-dir booklets/ --save-answer-key answer_key.yaml

  # Grade specific booklets and choose the report location
  grade-booklets --answer-key answer_key.yaml alice.pdf bob.jpg --output results.csv
        """
    )

    parser.add_argument(
        'booklets',
        type=Path,
        nargs='*',
        help='Booklet files to grade (PDF or image)'
    )
    parser.add_argument(
        '--booklets-dir', '-d',
        type=Path,
        default=None,
        help='Directory of booklet files to grade'
    )
    parser.add_argument(
        '--answer-key', '-k',
        type=Path,
        default=None,
        help='Answer key YAML created by build-answer-key'
    )
    add_question_arguments(parser)
    parser.add_argument(
        '--save-answer-key',
        type=Path,
        default=None,
        help='Save the generated answer key to this YAML file'
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=None,
        help='CSV report path (default: report.filename from config)'
    )
    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help='OpenAI model to use (overrides config value)'
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        action='append',
        default=[],
        help='Extra YAML config file merged over config/ (repeatable)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate inputs
    if args.answer_key is None and not has_question_input(args):
        LOG.error("Provide --answer-key or questions via --questions-text, --questions-file or --question-paper")
        sys.exit(1)

    if args.booklets_dir is not None and not args.booklets_dir.is_dir():
        LOG.error(f"Booklets directory does not exist: {args.booklets_dir}")
        sys.exit(1)

    try:
        config = load_all_configs(*[str(p) for p in args.config])
        backend = create_backend(config, model=args.model)
        batch_grader = BatchGrader(SubmissionGrader(backend, config), config)
    except Exception as e:
        LOG.error(f"Failed to initialize grader: {e}")
        sys.exit(1)

    booklet_files = list(args.booklets)
    if args.booklets_dir is not None:
        booklet_files.extend(batch_grader.find_booklet_files(args.booklets_dir))
    if not booklet_files:
        LOG.error("No student booklets to grade")
        sys.exit(1)

    try:
        answer_key, results = asyncio.run(
            prepare_and_grade_async(args, backend, batch_grader, booklet_files)
        )
    except (BookletReviewError, OSError, ValueError) as e:
        LOG.error(f"System Error: Failed to prepare answer key: {e}")
        sys.exit(1)

    output_path = args.output or Path(get_config("report.filename", config, default="grading_results.csv"))
    try:
        save_report(results, answer_key, output_path)
    except Exception as e:
        LOG.error(f"Failed to save report: {e}")
        sys.exit(1)

    summary = summarize_results(results)
    print(f"\n{'='*60}")
    print(f"Evaluation Complete")
    print(f"{'='*60}")
    print(f"Booklets processed: {summary['students']}")
    print(f"Successfully graded: {summary['graded']}")
    print(f"Failed: {summary['failed']}")

    for result in results:
        if result.is_failure:
            print(f"  {result.student_id}: {result.evaluations[0].remark}")
        else:
            print(f"  {result.student_id}: {result.total_score:g}/{result.max_score:g}")

    print(f"\nReport saved to: {output_path} ({summary['rows']} rows)")


if __name__ == "__main__":
    main()
