from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from concord.config.presets import demo_pattern_config
from concord.config.schemas import SamplingMode
from concord.experiments.demo_graph import build_demo_sampler
from concord.projection.crate import CrateData
from concord.projection.pattern import PatternData
from concord.sampling.sampler import Sampler
from concord.types import FloatArray, Marginals
from concord.utils.io import save_json, save_npz
from concord.utils.logging import configure_logging, log_event

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sample variations of the demo pattern model")
    parser.add_argument("--output-dir", type=Path, default=Path("results/demo_pattern"))
    parser.add_argument("--variations", type=int, default=None)
    parser.add_argument("--seed", type=int, default=3)
    parser.add_argument("--mode", choices=[m.value for m in SamplingMode], default="sample")
    parser.add_argument("--density", type=float, default=None)
    parser.add_argument("--async", dest="use_async", action="store_true")
    return parser.parse_args()


def stack_marginals(marginals: Marginals) -> FloatArray:
    """Pad per-variable distributions into one (variables, max domain) matrix."""

    width = max((m.shape[0] for m in marginals), default=0)
    stacked = np.zeros((len(marginals), width), dtype=np.float64)
    for row, distribution in enumerate(marginals):
        stacked[row, : distribution.shape[0]] = distribution
    return stacked


def sample_once(sampler: Sampler, use_async: bool) -> tuple[float, Marginals]:
    sampler.get_variation_from_environment()
    if use_async:
        sampler.sample_variation_async()
        while (score := sampler.get_score_if_done_sampling()) is None:
            time.sleep(0.001)
        marginals = sampler.conditional_probabilities()
    else:
        score, marginals = sampler.sample_variation_and_infer_marginals_sync()
    sampler.environment.return_sampled_variation_to_staging_area(sampler.variation)
    return score, marginals


def plot_marginals(path: Path, stacked: FloatArray) -> None:
    fig, ax = plt.subplots(figsize=(6.0, 4.0))
    image = ax.imshow(stacked.T, aspect="auto", origin="lower", cmap="viridis", vmin=0.0, vmax=1.0)
    ax.set_xlabel("Random variable")
    ax.set_ylabel("Value")
    ax.set_title("Conditional distributions of the last variation")
    fig.colorbar(image, ax=ax, label="Probability")
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def main() -> None:
    args = parse_args()
    configure_logging()
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    base = demo_pattern_config(seed=args.seed)
    update: dict[str, object] = {
        "sampler": base.sampler.model_copy(update={"mode": SamplingMode(args.mode)}),
    }
    if args.variations is not None:
        update["n_variations"] = args.variations
    if args.density is not None:
        update["density"] = args.density
    config = base.model_copy(update=update)

    sampler = build_demo_sampler(config)
    pattern = PatternData()
    crate = CrateData()
    rows: list[dict[str, object]] = []
    stacked = np.zeros((0, 0), dtype=np.float64)

    for index in range(config.n_variations):
        t0 = time.perf_counter()
        score, marginals = sample_once(sampler, use_async=args.use_async)
        elapsed = time.perf_counter() - t0

        sampler.set_columns_from_outputs(pattern)
        sampler.fill_crate_with_outputs(crate)
        stacked = stack_marginals(marginals)
        rows.append(
            {
                "index": index,
                "score": score,
                "seconds": elapsed,
                "pattern": pattern.to_payload(),
                "crate": crate.to_payload(),
            }
        )
        log_event(logger, "variation", index=index, score=score, seconds=elapsed)

    payload = {"config": config.model_dump(mode="json"), "rows": rows}
    save_json(output_dir / "variations.json", payload)
    save_npz(output_dir / "marginals.npz", marginals=stacked)
    plot_marginals(output_dir / "marginals.png", stacked)


if __name__ == "__main__":
    main()
