import argparse
import sys
from pathlib import Path

from joblib import dump

from ids_compare.config import RunConfig
from ids_compare.data import make_dataset
from ids_compare.features.columns_nsl_kdd import LABEL_COL
from ids_compare.features.pipeline import fit_features, transform_features
from ids_compare.features.reduction import variance_table
from ids_compare.models import classifiers, evaluate
from ids_compare.utils.errors import DegenerateColumn, SchemaMismatch, UnknownLabel
from ids_compare.utils.io import ensure_dir, save_frame, save_json
from ids_compare.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _model_params(name: str, config: RunConfig, tuned: dict) -> dict:
    if name == "rf":
        params = {"n_estimators": config.n_trees, "random_state": config.random_state}
        params.update(tuned)
        return params
    return {}


def run(config: RunConfig) -> dict:
    ensure_dir(config.models_dir)
    ensure_dir(config.reports_dir)

    logger.info("[1/5] Loading and labelling records...")
    schema, train_df, test_df = make_dataset.main(
        config.train_path, config.test_path, config.schema_path, reports_dir=config.reports_dir
    )

    logger.info("[2/5] Fitting encoding and PCA on training rows...")
    spec = fit_features(
        train_df,
        numeric_components=config.numeric_components,
        dummy_components=config.dummy_components,
        excluded_nominal=config.excluded_nominal,
        numeric_columns=schema.numeric,
        nominal_columns=schema.nominal,
        drop_constant=config.drop_constant,
    )
    save_frame(variance_table(spec.numeric_reduction), config.reports_dir / "variance_numeric.csv")
    save_frame(variance_table(spec.dummy_reduction), config.reports_dir / "variance_dummy.csv")
    dump(spec, config.models_dir / "feature_spec.joblib")

    logger.info("[3/5] Projecting train and test batches...")
    X_tr = transform_features(train_df, spec)
    X_te = transform_features(test_df, spec)
    y_tr = train_df[LABEL_COL].to_numpy()
    y_te = test_df[LABEL_COL].to_numpy()
    logger.debug(f"Train matrix {X_tr.shape}, test matrix {X_te.shape}")

    tuned = {}
    if config.tune and "rf" in config.models:
        tuned = classifiers.tune_random_forest(X_tr, y_tr, config.rf_grid, random_state=config.random_state)

    if config.select_top:
        selector = classifiers.train("rf", X_tr, y_tr, **_model_params("rf", config, tuned))
        importances = selector.feature_importances()
        save_frame(importances.to_frame(), config.reports_dir / "rf_importance.csv")
        keep = classifiers.select_features(importances, top_n=config.select_top)
        logger.info(f"[+] Keeping top {len(keep)} components: {keep}")
        X_tr, X_te = X_tr[keep], X_te[keep]

    logger.info(f"[4/5] Training models: {list(config.models)}")
    trained = {}
    for name in config.models:
        logger.info(f"=== Training {name.upper()} ===")
        model = classifiers.train(name, X_tr, y_tr, **_model_params(name, config, tuned))
        model.save_model(config.models_dir / f"{name}.joblib")
        trained[name] = model

    logger.info("[5/5] Evaluating models on the test batch...")
    summary = {}
    for name, model in trained.items():
        y_pred = classifiers.predict(model, X_te)
        report = evaluate.evaluate(y_pred, y_te, model=name)
        evaluate.write_report(report, config.reports_dir, predicted=y_pred, actual=y_te)
        summary[name] = report.summary()
        logger.info(f"{name.upper()} confusion matrix:\n{report.confusion}")
        logger.info(f"[+] {name.upper()} weighted F1: {report.weighted_f1:.2f}")
    save_json(summary, config.reports_dir / "comparison.json")
    return summary


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected an integer >= 1, got {value}")
    return n


def parse_args(argv=None) -> argparse.Namespace:
    defaults = RunConfig()
    parser = argparse.ArgumentParser(description="Compare LDA and Random Forests on NSL-KDD after PCA")
    parser.add_argument("--train", type=Path, default=defaults.train_path, help="Training rows (KDDTrain+.txt)")
    parser.add_argument("--test", type=Path, default=defaults.test_path, help="Test rows (KDDTest+.txt)")
    parser.add_argument("--schema", type=Path, default=defaults.schema_path,
                        help="kddcup.names style schema; built-in NSL-KDD schema if omitted")
    parser.add_argument("--numeric-components", type=int, default=defaults.numeric_components)
    parser.add_argument("--dummy-components", type=int, default=defaults.dummy_components)
    parser.add_argument("--exclude-nominal", nargs="*", default=list(defaults.excluded_nominal),
                        help="Nominal columns left out of dummy encoding")
    parser.add_argument("--keep-constant", action="store_true",
                        help="Fail on zero-variance columns instead of dropping them")
    parser.add_argument("--models", nargs="+", choices=sorted(classifiers.REGISTRY), default=list(defaults.models))
    parser.add_argument("--n-trees", type=int, default=defaults.n_trees)
    parser.add_argument("--seed", type=int, default=defaults.random_state)
    parser.add_argument("--select-top", type=_positive_int, default=None,
                        help="Train on the N components ranked highest by RF importance")
    parser.add_argument("--tune", action="store_true", help="Grid search RF hyperparameters first")
    parser.add_argument("--models-dir", type=Path, default=defaults.models_dir)
    parser.add_argument("--reports-dir", type=Path, default=defaults.reports_dir)
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)
    config = RunConfig(
        train_path=args.train,
        test_path=args.test,
        schema_path=args.schema,
        numeric_components=args.numeric_components,
        dummy_components=args.dummy_components,
        excluded_nominal=tuple(args.exclude_nominal),
        drop_constant=not args.keep_constant,
        models=tuple(args.models),
        n_trees=args.n_trees,
        random_state=args.seed,
        select_top=args.select_top,
        tune=args.tune,
        models_dir=args.models_dir,
        reports_dir=args.reports_dir,
    )
    try:
        run(config)
    except (UnknownLabel, SchemaMismatch, DegenerateColumn) as e:
        logger.error(f"[-] {type(e).__name__}: {e}")
        sys.exit(1)
    logger.info("[+] Done. Models and reports are saved.")


if __name__ == "__main__":
    main()
