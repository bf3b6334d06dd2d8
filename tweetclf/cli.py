import argparse
from typing import List, Optional

from tweetclf.evaluation.classical import ClassicalEvalConfig, evaluate_saved
from tweetclf.training.trainer import run_pipeline
from tweetclf.utils.config import PipelineConfig, apply_config, load_experiment_config
from tweetclf.utils.logging import get_logger


def _csv_floats(value: str) -> List[float]:
    return [float(v) for v in value.split(",") if v.strip()]


def _csv_strings(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def build_train_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Train and evaluate the keyword-tweet SVM classifier")
    parser.add_argument("--config", type=str, help="Optional config file (YAML/JSON)")
    parser.add_argument("--data_csv", type=str, help="Labelled CSV with text and class columns")
    parser.add_argument("--text_col", type=str)
    parser.add_argument("--label_col", type=str)
    parser.add_argument("--encoding", type=str)
    parser.add_argument("--domain_terms", type=_csv_strings, help="Comma-separated terms removed with the stopwords")
    parser.add_argument("--stopword_source", choices=["sklearn", "nltk"])
    parser.add_argument("--stemmer", choices=["snowball", "porter"])
    parser.add_argument("--min_doc_fraction", type=float, help="Keep terms found in at least this share of documents")
    parser.add_argument("--train_ratio", type=float)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--cv_folds", type=int)
    parser.add_argument("--kernels", type=_csv_strings, help="Comma-separated kernels (linear,rbf)")
    parser.add_argument("--C_values", type=_csv_floats, help="Comma-separated cost values")
    parser.add_argument("--gamma_values", type=_csv_floats, help="Comma-separated rbf gamma values")
    parser.add_argument("--output_dir", type=str)
    parser.add_argument("--show_progress", action="store_true", default=None)
    return parser


def train_main(argv: Optional[List[str]] = None) -> float:
    parser = build_train_parser()
    args = parser.parse_args(argv)

    if args.config:
        # Explicit CLI flags win over the config file.
        cli_values = {k: v for k, v in vars(args).items() if v is not None}
        apply_config(args, load_experiment_config(args.config))
        for key, value in cli_values.items():
            setattr(args, key, value)

    cfg = PipelineConfig.from_mapping(vars(args))
    logger = get_logger()
    logger.info(f"Starting run on {cfg.data_csv} (seed={cfg.seed}, cv_folds={cfg.cv_folds})")
    result = run_pipeline(cfg)
    logger.info(f"Run completed: test accuracy={result.accuracy:.4f}")
    return result.accuracy


def evaluate_main(argv: Optional[List[str]] = None) -> float:
    parser = argparse.ArgumentParser(description="Score a labelled CSV with a saved classifier")
    parser.add_argument("--checkpoint", type=str, required=True, help="Directory written by a training run")
    parser.add_argument("--data_csv", type=str, required=True, help="Labelled CSV to score")
    parser.add_argument("--text_col", type=str, default="text")
    parser.add_argument("--label_col", type=str, default="class")
    parser.add_argument("--encoding", type=str, default="utf-8")
    parser.add_argument("--output_dir", type=str, default="outputs/eval")
    args = parser.parse_args(argv)

    logger = get_logger()
    logger.info(f"Evaluating checkpoint={args.checkpoint} on {args.data_csv}")
    result = evaluate_saved(ClassicalEvalConfig(
        checkpoint_dir=args.checkpoint,
        data_csv=args.data_csv,
        text_col=args.text_col,
        label_col=args.label_col,
        encoding=args.encoding,
        output_dir=args.output_dir,
    ))
    return result.accuracy
