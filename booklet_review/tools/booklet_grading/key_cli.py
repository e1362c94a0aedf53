#!/usr/bin/env python3
"""Command-line interface for generating an answer key from a question paper."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from booklet_review.libs.config_loader import load_all_configs
from .backend import create_backend
from .errors import BookletReviewError
from .key_synthesizer import AnswerKeySynthesizer, load_question_inputs, save_answer_key
from .models import AnswerKeyItem

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)


def add_question_arguments(parser: argparse.ArgumentParser):
    """Arguments shared by every command that can build an answer key."""
    parser.add_argument(
        '--questions-text', '-q',
        type=str,
        default=None,
        help='Questions typed inline, e.g. "1. Define gravity. 2. Solve 2x + 4 = 10."'
    )
    parser.add_argument(
        '--questions-file',
        type=Path,
        default=None,
        help='Plain-text file containing the questions'
    )
    parser.add_argument(
        '--question-paper', '-p',
        type=Path,
        action='append',
        default=[],
        help='PDF or image of the question paper (repeatable)'
    )


def has_question_input(args: argparse.Namespace) -> bool:
    return bool((args.questions_text or '').strip() or args.questions_file or args.question_paper)


def print_answer_key(answer_key: Sequence[AnswerKeyItem]):
    """Print a short overview of an answer key."""
    print(f"\n{'='*60}")
    print(f"Answer Key ({len(answer_key)} questions)")
    print(f"{'='*60}")
    for item in answer_key:
        print(f"Q{item.question_no} [{item.type}] - {item.max_score:g} marks")
        print(f"  {item.question_text}")
        for param in item.parameters:
            print(f"  - {param.name}: {param.weightage:g}")


def main():
    """Main entry point for build-answer-key command."""
    parser = argparse.ArgumentParser(
        description='Generate an answer key with partial-credit parameters from a question paper',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build a key from a scanned question paper
  build-answer-key --question-paper exam.pdf --output answer_key.yaml

  # Build a key from typed questions
  build-answer-key -q "1. Define gravity. 2. Solve 2x + 4 = 10." -o answer_key.yaml

  # Override the model from config
  build-answer-key --questions-file questions.txt --model gpt-5
        """
    )
    add_question_arguments(parser)
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=Path('answer_key.yaml'),
        help='Where to save the answer key (default: answer_key.yaml)'
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

    if not has_question_input(args):
        LOG.error("Provide questions via --questions-text, --questions-file or --question-paper")
        sys.exit(1)

    try:
        config = load_all_configs(*[str(p) for p in args.config])
        synthesizer = AnswerKeySynthesizer(create_backend(config, model=args.model))
    except Exception as e:
        LOG.error(f"Failed to initialize answer key generator: {e}")
        sys.exit(1)

    try:
        question_text, question_files = load_question_inputs(
            args.questions_text, args.questions_file, args.question_paper
        )
        answer_key = synthesizer.synthesize(question_text, question_files)
    except (BookletReviewError, OSError, ValueError) as e:
        LOG.error(f"Failed to generate answer key: {e}")
        sys.exit(1)

    try:
        save_answer_key(answer_key, args.output)
    except Exception as e:
        LOG.error(f"Failed to save answer key: {e}")
        sys.exit(1)

    print_answer_key(answer_key)
    print(f"\nAnswer key saved to: {args.output}")


if __name__ == "__main__":
    main()
