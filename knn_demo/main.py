"""
k-NN Classification Demo - Gradio Interface

This module provides a web-based user interface for the classification
pipeline. It allows users to:
- Load a bundled tabular dataset and inspect it
- Split it into training and testing sets and standardize the features
- Train a k-nearest-neighbors classifier and read its accuracy report
- Compare error rates across a range of k values
"""

import gradio as gr
import logging
import matplotlib.pyplot as plt
import traceback
from typing import Optional, Tuple

from knn_demo.dataset_loader import DATASET_LOADERS, get_dataset_info, load_tabular_dataset, split_dataset
from knn_demo.preprocess import scale_features
from knn_demo.state import default_config, get_config_value, load_config, save_metrics
from knn_demo.train import VALID_WEIGHTS, evaluate_model, find_best_k, train_knn_model
from knn_demo.visualization import create_confusion_matrix_plot, create_k_search_plot


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class DemoState:
    def __init__(self):
        self.features = None
        self.labels = None
        self.target_names = None
        self.dataset_name = None
        self.X_train = None
        self.X_test = None
        self.y_train = None
        self.y_test = None
        self.scaler = None
        self.trained_model = None
        self.evaluation = None
        self.config = None
        self.figures = {}

    @property
    def metric(self) -> str:
        """Distance metric from the loaded configuration"""
        return get_config_value(self.config or {}, 'knn.metric', 'minkowski')

    def show_figure(self, slot: str, figure):
        """Track the figure shown in a plot slot, closing the one it replaces"""
        previous = self.figures.get(slot)
        if previous is not None and previous is not figure:
            plt.close(previous)
        self.figures[slot] = figure
        return figure

    def reset_dataset(self):
        """Reset dataset-related state"""
        self.features = None
        self.labels = None
        self.target_names = None
        self.dataset_name = None
        self.reset_split()

    def reset_split(self):
        """Reset split and scaling state"""
        self.X_train = None
        self.X_test = None
        self.y_train = None
        self.y_test = None
        self.scaler = None
        self.reset_training()

    def reset_training(self):
        """Reset training-related state"""
        self.trained_model = None
        self.evaluation = None


state = DemoState()


def load_initial_config() -> dict:
    """Load configuration from file or use defaults"""
    try:
        config = load_config()
        logger.info("Configuration loaded successfully")
        return config
    except Exception as e:
        logger.warning(f"Failed to load config: {e}. Using defaults.")
        return default_config()


def load_dataset_handler(dataset_name: str) -> Tuple[str, str]:
    """
    Load a bundled dataset

    Returns:
        Tuple of (status_message, dataset_info_text)
    """
    try:
        state.reset_dataset()

        features, labels, target_names = load_tabular_dataset(dataset_name)
        state.features = features
        state.labels = labels
        state.target_names = target_names
        state.dataset_name = dataset_name

        info = get_dataset_info(features, labels, target_names)

        info_text = f"""**Dataset Information ({dataset_name}):**
- **Samples:** {info['n_samples']:,}
- **Features:** {info['n_features']}
- **Classes:** {', '.join(info['classes'])}

**Samples per Class:**
"""
        for class_name, count in info['samples_per_class'].items():
            info_text += f"- {class_name}: {count:,}\n"

        info_text += f"\n**Feature Names:** {', '.join(info['feature_names'])}\n"

        status_msg = f"[SUCCESS] Dataset '{dataset_name}' loaded: {info['n_samples']:,} samples"
        logger.info(status_msg)

        return status_msg, info_text

    except Exception as e:
        error_msg = f"[ERROR] Error loading dataset: {str(e)}"
        logger.error(error_msg)
        logger.error(traceback.format_exc())
        state.reset_dataset()
        return error_msg, ""


def split_and_scale_handler(test_size: float, random_state: int, stratify: bool) -> str:
    """
    Split the loaded dataset and standardize the features

    Returns:
        Status message
    """
    try:
        if state.features is None:
            return "[ERROR] Please load a dataset first"

        state.reset_split()

        X_train, X_test, y_train, y_test = split_dataset(
            state.features,
            state.labels,
            test_size=float(test_size),
            random_state=int(random_state),
            stratify=bool(stratify)
        )
        state.X_train, state.X_test, state.scaler = scale_features(X_train, X_test)
        state.y_train = y_train
        state.y_test = y_test

        status_msg = f"[SUCCESS] Split into {len(X_train)} training and {len(X_test)} testing samples; features standardized"
        logger.info(status_msg)
        return status_msg

    except Exception as e:
        error_msg = f"[ERROR] Error splitting dataset: {str(e)}"
        logger.error(error_msg)
        logger.error(traceback.format_exc())
        state.reset_split()
        return error_msg


def train_model_handler(n_neighbors: int, weights: str, progress=gr.Progress()):
    """
    Train a KNN model on the scaled training split and evaluate it

    Returns:
        Tuple of (metrics_text, confusion_matrix_figure)
    """
    try:
        if state.X_train is None:
            return "[ERROR] Please split and scale the dataset first", None

        progress(0, desc="Initializing training...")
        state.reset_training()

        logger.info("Starting KNN training")
        progress(0.2, desc="Training KNN model...")

        results = train_knn_model(
            state.X_train,
            state.y_train,
            n_neighbors=int(n_neighbors),
            weights=weights,
            metric=state.metric,
            verbose=True
        )
        state.trained_model = results['model']

        progress(0.6, desc="Evaluating model...")
        evaluation = evaluate_model(
            state.trained_model,
            state.X_test,
            state.y_test,
            target_names=state.target_names
        )
        state.evaluation = evaluation

        if state.config:
            metrics = {
                'dataset': state.dataset_name,
                'n_neighbors': int(n_neighbors),
                'weights': weights,
                'accuracy': float(evaluation['accuracy']),
                'training_time': float(results['training_time']),
                'inference_time_ms_per_sample': float(evaluation['inference_time_ms_per_sample']),
                'n_samples': int(results['n_samples'])
            }
            save_metrics(metrics, get_config_value(state.config, 'metrics_path', './knn_demo/local/metrics.json'))

        progress(0.9, desc="Plotting confusion matrix...")
        figure = state.show_figure(
            'confusion_matrix',
            create_confusion_matrix_plot(evaluation['confusion_matrix'], state.target_names)
        )

        metrics_text = f"""**Training Complete!**

**Model:** KNN (k={int(n_neighbors)}, weights={weights}, metric={state.metric})

**Results:**
- **Test Accuracy:** {evaluation['accuracy'] * 100:.2f}%
- **Training Samples:** {results['n_samples']:,}

**Computation Complexity:**
- **Training Time:** {results['training_time']:.3f} seconds
- **Inference Time:** {evaluation['inference_time_ms_per_sample']:.3f} ms/sample

**Classification Report:**
```
{evaluation['classification_report']}
```
"""

        progress(1.0, desc="Complete!")
        logger.info(f"Training complete! Test Accuracy: {evaluation['accuracy'] * 100:.2f}%")

        return metrics_text, figure

    except Exception as e:
        error_msg = f"[ERROR] Error during training: {str(e)}"
        logger.error(error_msg)
        logger.error(traceback.format_exc())
        return error_msg, None


def search_k_handler(min_k: int, max_k: int, weights: str):
    """
    Score every k between min_k and max_k

    Returns:
        Tuple of (status_message, error_rate_figure)
    """
    try:
        if state.X_train is None:
            return "[ERROR] Please split and scale the dataset first", None

        if int(min_k) > int(max_k):
            return f"[ERROR] Minimum k ({int(min_k)}) cannot exceed maximum k ({int(max_k)})", None

        search = find_best_k(
            state.X_train,
            state.y_train,
            state.X_test,
            state.y_test,
            k_values=range(int(min_k), int(max_k) + 1),
            weights=weights,
            metric=state.metric
        )

        figure = state.show_figure(
            'k_search',
            create_k_search_plot(search['k_values'], search['error_rates'], best_k=search['best_k'])
        )
        best_error = min(search['error_rates'])

        return f"[SUCCESS] Best k = {search['best_k']} (error rate {best_error:.4f})", figure

    except Exception as e:
        error_msg = f"[ERROR] Error during k search: {str(e)}"
        logger.error(error_msg)
        logger.error(traceback.format_exc())
        return error_msg, None


def create_gradio_interface():
    """Create and configure the Gradio interface"""
    state.config = load_initial_config()

    with gr.Blocks(title="k-NN Classification Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("# k-Nearest-Neighbors Classification")

        with gr.Accordion("Dataset", open=True):
            dataset_input = gr.Dropdown(
                choices=list(DATASET_LOADERS),
                value=state.config.get('dataset', 'wine'),
                label="Dataset"
            )
            load_dataset_btn = gr.Button("Load Dataset", variant="primary")
            dataset_status = gr.Textbox(label="Status", interactive=False)
            dataset_info = gr.Markdown("")

        with gr.Accordion("Split and Scale", open=True):
            with gr.Row():
                test_size_input = gr.Slider(
                    minimum=0.1,
                    maximum=0.5,
                    value=get_config_value(state.config, 'split.test_size', 0.2),
                    step=0.05,
                    label="Test Size"
                )
                random_state_input = gr.Number(
                    value=get_config_value(state.config, 'split.random_state', 42),
                    precision=0,
                    label="Random Seed"
                )
                stratify_input = gr.Checkbox(
                    value=get_config_value(state.config, 'split.stratify', True),
                    label="Stratify by class"
                )
            split_btn = gr.Button("Split and Scale", variant="primary")
            split_status = gr.Textbox(label="Status", interactive=False)

        with gr.Accordion("Training", open=True):
            with gr.Row():
                n_neighbors_input = gr.Slider(
                    minimum=1,
                    maximum=30,
                    value=get_config_value(state.config, 'knn.n_neighbors', 5),
                    step=1,
                    label="Number of Neighbors (k)"
                )
                weights_input = gr.Radio(
                    choices=list(VALID_WEIGHTS),
                    value=get_config_value(state.config, 'knn.weights', 'uniform'),
                    label="Weights"
                )
            train_btn = gr.Button("Train Model", variant="primary")
            training_metrics = gr.Markdown("")
            confusion_plot = gr.Plot(label="Confusion Matrix")

        with gr.Accordion("Choosing k", open=False):
            with gr.Row():
                min_k_input = gr.Number(
                    value=get_config_value(state.config, 'k_search.min_k', 1),
                    precision=0,
                    label="Minimum k"
                )
                max_k_input = gr.Number(
                    value=get_config_value(state.config, 'k_search.max_k', 20),
                    precision=0,
                    label="Maximum k"
                )
            search_btn = gr.Button("Search k", variant="primary")
            search_status = gr.Textbox(label="Status", interactive=False)
            k_search_plot = gr.Plot(label="Error Rate vs. k")

        load_dataset_btn.click(
            fn=load_dataset_handler,
            inputs=[dataset_input],
            outputs=[dataset_status, dataset_info]
        )

        split_btn.click(
            fn=split_and_scale_handler,
            inputs=[test_size_input, random_state_input, stratify_input],
            outputs=[split_status]
        )

        train_btn.click(
            fn=train_model_handler,
            inputs=[n_neighbors_input, weights_input],
            outputs=[training_metrics, confusion_plot]
        )

        search_btn.click(
            fn=search_k_handler,
            inputs=[min_k_input, max_k_input, weights_input],
            outputs=[search_status, k_search_plot]
        )

    return demo


def launch_gradio(share: bool = False, server_port: int = 7862, dataset: Optional[str] = None):
    """
    Launch the Gradio interface

    Args:
        share: Whether to create a public link
        server_port: Port to run the Gradio server on
        dataset: Optional dataset to pre-load before the UI starts
    """
    logger.info("Starting k-NN Classification Demo UI...")
    logger.info(f"Access the interface at: http://localhost:{server_port}")

    demo = create_gradio_interface()

    if dataset:
        status_msg, _ = load_dataset_handler(dataset)
        logger.info(status_msg)

    demo.launch(
        share=share,
        server_port=server_port,
        server_name="127.0.0.1"
    )


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="k-NN Classification Demo")
    parser.add_argument(
        "--port",
        type=int,
        default=7862,
        help="Port to run the Gradio interface on (default: 7862)"
    )
    parser.add_argument(
        "--dataset",
        type=str,
        choices=list(DATASET_LOADERS),
        default=None,
        help="Dataset to load at startup"
    )
    parser.add_argument(
        "--share",
        action="store_true",
        help="Create a public Gradio link"
    )

    args = parser.parse_args()

    launch_gradio(
        share=args.share,
        server_port=args.port,
        dataset=args.dataset
    )
