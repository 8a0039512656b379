"""
k-NN Classification Pipeline

Runs the notebook flow from top to bottom: load a bundled tabular dataset,
hold out 20% for testing, standardize the features, fit a k-nearest-neighbors
classifier, predict the held-out rows and print the accuracy report.

Usage:
    python -m knn_demo.pipeline
    python -m knn_demo.pipeline --dataset iris --n-neighbors 7
    python -m knn_demo.pipeline --search-k --save
"""

import argparse
import logging
import sys
from typing import Dict, Optional

from knn_demo.dataset_loader import DATASET_LOADERS, get_dataset_info, load_tabular_dataset, split_dataset
from knn_demo.preprocess import scale_features, summarize_scaling
from knn_demo.state import (
    DEFAULT_CONFIG_PATH,
    validate_config,
    default_config,
    get_config_value,
    load_config,
    save_metrics,
    update_config_value,
)
from knn_demo.train import build_inference_pipeline, evaluate_model, find_best_k, save_knn_model, train_knn_model
from knn_demo.utils import setup_logging


logger = logging.getLogger("knn_demo")


def run_pipeline(config: Optional[Dict] = None, search_k: bool = False, save: bool = False, verbose: bool = True) -> Dict:
    """
    Run load -> split -> scale -> train -> evaluate on one dataset.

    Args:
        config: Pipeline configuration (default: DEFAULT_CONFIG)
        search_k: Also score every k in the configured k_search range
        save: Write the inference pipeline and metrics to the configured paths
        verbose: Print the report to stdout

    Returns:
        Dictionary containing dataset_info, n_train, n_test, scaling,
        model, inference_pipeline, training_time, accuracy,
        confusion_matrix, classification_report, report_dict, target_names,
        and k_search (when search_k is True)

    Raises:
        ValueError: If the configuration is invalid
    """
    if config is None:
        config = default_config()

    validate_config(config)

    dataset_name = config['dataset']
    features, labels, target_names = load_tabular_dataset(dataset_name)
    dataset_info = get_dataset_info(features, labels, target_names)

    X_train, X_test, y_train, y_test = split_dataset(
        features,
        labels,
        test_size=get_config_value(config, 'split.test_size', 0.2),
        random_state=get_config_value(config, 'split.random_state', 42),
        stratify=get_config_value(config, 'split.stratify', True)
    )

    X_train_scaled, X_test_scaled, scaler = scale_features(X_train, X_test)

    training = train_knn_model(
        X_train_scaled,
        y_train,
        n_neighbors=get_config_value(config, 'knn.n_neighbors', 5),
        weights=get_config_value(config, 'knn.weights', 'uniform'),
        metric=get_config_value(config, 'knn.metric', 'minkowski'),
        verbose=verbose
    )

    evaluation = evaluate_model(training['model'], X_test_scaled, y_test, target_names=target_names)

    results = {
        'dataset_info': dataset_info,
        'n_train': len(X_train),
        'n_test': len(X_test),
        'scaling': summarize_scaling(X_train_scaled),
        'model': training['model'],
        'inference_pipeline': build_inference_pipeline(scaler, training['model']),
        'training_time': training['training_time'],
        'target_names': target_names,
        **evaluation
    }

    if search_k:
        k_range = range(
            get_config_value(config, 'k_search.min_k', 1),
            get_config_value(config, 'k_search.max_k', 20) + 1
        )
        results['k_search'] = find_best_k(
            X_train_scaled,
            y_train,
            X_test_scaled,
            y_test,
            k_values=k_range,
            weights=get_config_value(config, 'knn.weights', 'uniform'),
            metric=get_config_value(config, 'knn.metric', 'minkowski')
        )

    if verbose:
        print_report(dataset_name, results)

    if save:
        save_knn_model(results['inference_pipeline'], config['model_path'])

        metrics = {
            'dataset': dataset_name,
            'n_neighbors': int(training['model'].n_neighbors),
            'n_train': int(results['n_train']),
            'n_test': int(results['n_test']),
            'accuracy': float(results['accuracy']),
            'training_time': float(results['training_time']),
            'inference_time_ms_per_sample': float(results['inference_time_ms_per_sample']),
            'confusion_matrix': results['confusion_matrix'].tolist()
        }
        if search_k:
            metrics['best_k'] = int(results['k_search']['best_k'])
        save_metrics(metrics, config['metrics_path'])
        logger.info(f"Metrics saved to {config['metrics_path']}")

    logger.info(f"Test Accuracy: {results['accuracy'] * 100:.2f}%")

    return results


def print_report(dataset_name: str, results: Dict) -> None:
    info = results['dataset_info']

    print("\n" + "=" * 70)
    print(f"K-NEAREST-NEIGHBORS ON THE {dataset_name.upper()} DATASET".center(70))
    print("=" * 70)
    print(f"\nDataset: {info['n_samples']} samples, {info['n_features']} features")
    for class_name, count in info['samples_per_class'].items():
        print(f"  {class_name}: {count}")

    print(f"\nTrain samples: {results['n_train']}, Test samples: {results['n_test']}")
    print(f"n_neighbors: {results['model'].n_neighbors}")

    print(f"\nAccuracy: {results['accuracy']:.4f}")
    print("\nClassification report:")
    print(results['classification_report'])
    print("Confusion matrix:")
    print(results['confusion_matrix'])

    if 'k_search' in results:
        search = results['k_search']
        print("\nError rate by k:")
        for k, error in zip(search['k_values'], search['error_rates']):
            marker = '  <- best' if k == search['best_k'] else ''
            print(f"  k={k:>2}: {error:.4f}{marker}")
    print()


def main():
    parser = argparse.ArgumentParser(
        description="Train and evaluate a k-nearest-neighbors classifier on a bundled dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Wine dataset with the settings from knn_demo/config.json
  python -m knn_demo.pipeline

  # Iris dataset with 7 neighbors and a 25% test split
  python -m knn_demo.pipeline --dataset iris --n-neighbors 7 --test-size 0.25

  # Search k from the configured range and save the model and metrics
  python -m knn_demo.pipeline --search-k --save
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f'Path to the JSON configuration file (default: {DEFAULT_CONFIG_PATH})'
    )

    parser.add_argument(
        '--dataset',
        type=str,
        choices=list(DATASET_LOADERS),
        default=None,
        help='Dataset to load (overrides config)'
    )

    parser.add_argument(
        '--n-neighbors',
        type=int,
        default=None,
        help='Number of neighbors (overrides config)'
    )

    parser.add_argument(
        '--test-size',
        type=float,
        default=None,
        help='Fraction of samples held out for testing (overrides config)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for the split (overrides config)'
    )

    parser.add_argument(
        '--search-k',
        action='store_true',
        help='Score every k in the configured k_search range'
    )

    parser.add_argument(
        '--save',
        action='store_true',
        help='Save the fitted pipeline and metrics to the configured paths'
    )

    args = parser.parse_args()

    try:
        setup_logging()

        try:
            config = load_config(args.config)
        except FileNotFoundError as e:
            logger.warning(f"{e}. Using defaults.")
            config = default_config()

        setup_logging(config.get('log_level', 'INFO'))

        overrides = {
            'dataset': args.dataset,
            'knn.n_neighbors': args.n_neighbors,
            'split.test_size': args.test_size,
            'split.random_state': args.seed,
        }
        for key, value in overrides.items():
            if value is not None:
                update_config_value(config, key, value)

        run_pipeline(config, search_k=args.search_k, save=args.save)
    except Exception as e:
        print(f"\n✗ ERROR: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
