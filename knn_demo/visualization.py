"""
Visualization utilities for the k-NN demo
Generates plots for confusion matrices, k search results and feature distributions
"""

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
from typing import List, Optional, Sequence

from knn_demo.utils import ensure_parent_directory


def create_confusion_matrix_plot(cm: np.ndarray, class_names: Sequence[str]) -> plt.Figure:
    """
    Plot a confusion matrix as an annotated heatmap

    Args:
        cm: Confusion matrix with true labels as rows
        class_names: List of class names

    Returns:
        Matplotlib figure compatible with Gradio gr.Plot()
    """
    cm = np.asarray(cm)
    if cm.shape != (len(class_names), len(class_names)):
        raise ValueError(
            f"Confusion matrix shape {cm.shape} does not match {len(class_names)} classes"
        )

    fig, ax = plt.subplots(figsize=(8, 6))
    sns.heatmap(cm, annot=True, fmt='d', cmap='Blues',
                xticklabels=class_names, yticklabels=class_names,
                ax=ax, cbar_kws={'label': 'Count'})
    ax.set_title('Confusion Matrix', fontsize=14, fontweight='bold')
    ax.set_ylabel('True Label', fontsize=12)
    ax.set_xlabel('Predicted Label', fontsize=12)

    plt.tight_layout()
    return fig


def create_k_search_plot(k_values: List[int], error_rates: List[float], best_k: Optional[int] = None) -> plt.Figure:
    """
    Plot test error rate against the number of neighbors

    Args:
        k_values: Evaluated k values
        error_rates: Error rate for each k
        best_k: k to highlight, if any

    Returns:
        Matplotlib figure compatible with Gradio gr.Plot()
    """
    if len(k_values) != len(error_rates):
        raise ValueError("k_values and error_rates must have the same length")

    fig, ax = plt.subplots(figsize=(10, 5))

    ax.plot(k_values, error_rates, 'b-', marker='o', linewidth=2, markersize=6, label='Error Rate')

    if best_k is not None and best_k in k_values:
        best_error = error_rates[list(k_values).index(best_k)]
        ax.axvline(best_k, color='r', linestyle='--', alpha=0.6)
        ax.plot([best_k], [best_error], 'r*', markersize=14, label=f'Best k = {best_k}')

    ax.set_title('Error Rate vs. k', fontsize=14, fontweight='bold')
    ax.set_xlabel('Number of Neighbors (k)', fontsize=12)
    ax.set_ylabel('Error Rate', fontsize=12)
    ax.set_xticks(list(k_values))
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def create_feature_distribution_plot(features, labels, feature_name: str, class_names: Optional[Sequence[str]] = None) -> plt.Figure:
    """
    Plot feature distribution for different classes

    Args:
        features: Feature DataFrame
        labels: Label array (n_samples,)
        feature_name: Column to plot
        class_names: Optional class names, indexed by label

    Returns:
        Matplotlib figure compatible with Gradio gr.Plot()
    """
    if feature_name not in features.columns:
        raise ValueError(f"Unknown feature '{feature_name}'")

    fig, ax = plt.subplots(figsize=(10, 6))

    labels = np.asarray(labels)
    for label in np.unique(labels):
        mask = labels == label
        name = class_names[int(label)] if class_names is not None else f'Class {label}'
        ax.hist(features.loc[mask, feature_name], bins=20, alpha=0.5, label=name)

    ax.set_title(f'Distribution of {feature_name}', fontsize=14, fontweight='bold')
    ax.set_xlabel(feature_name, fontsize=12)
    ax.set_ylabel('Frequency', fontsize=12)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3, axis='y')

    plt.tight_layout()
    return fig


def save_figure(fig: plt.Figure, path: str) -> None:
    """Write a figure to a PNG file and close it"""
    ensure_parent_directory(path)
    fig.savefig(path, format='png', bbox_inches='tight', dpi=100)
    plt.close(fig)
