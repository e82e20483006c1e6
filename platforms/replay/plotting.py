"""
Plotting of dead-reckoned and ground-truth traces.
"""

from typing import List, Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def plot_traces(projected: Sequence[Tuple[float, float]],
                ground_truth: Sequence[Tuple[float, float]],
                output_path: str,
                title: str = "DR vs GNSS") -> Optional[str]:
    """
    Plot both traces in longitude/latitude and save the figure.

    Args:
        projected: DR trace as (lat, lon) pairs
        ground_truth: Ground-truth trace as (lat, lon) pairs
        output_path: Image file to write
        title: Plot title

    Returns:
        output_path, or None if there was nothing to plot
    """
    if not projected and not ground_truth:
        print(f"Warning: No trace points to plot for {title}")
        return None

    fig, ax = plt.subplots(figsize=(10, 8))

    if ground_truth:
        lats, lons = _split(ground_truth)
        ax.plot(lons, lats, 'o-', color='tab:purple', markersize=3, label='GNSS')
        ax.scatter(lons[0], lats[0], color='green', s=80, label='Start', zorder=3)

    if projected:
        lats, lons = _split(projected)
        ax.plot(lons, lats, '-', color='tab:orange', linewidth=1.5, label='DR')
        ax.scatter(lons[-1], lats[-1], color='red', s=80, label='DR end', zorder=3)

    ax.set_title(title)
    ax.set_xlabel('Longitude')
    ax.set_ylabel('Latitude')
    ax.grid(True)
    ax.legend()
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)

    return output_path


def _split(trace) -> Tuple[List[float], List[float]]:
    lats = [p[0] for p in trace]
    lons = [p[1] for p in trace]
    return lats, lons
