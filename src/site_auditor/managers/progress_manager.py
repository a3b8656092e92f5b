# src/site_auditor/managers/progress_manager.py
import sys
import logging

from tqdm import tqdm

logger = logging.getLogger(__name__)


class ProgressManager:
    """
    Manages the lifecycle of the tqdm bar shown during batch audits.
    """

    def __init__(self, total: int, desc: str, unit: str = "url"):
        if total <= 0:
            total = 1

        self.failures = 0
        self.pbar = tqdm(
            total=total,
            desc=desc,
            unit=f" {unit}",
            dynamic_ncols=True,
            smoothing=0.1,
            mininterval=0.5,
            postfix={"failures": 0},
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}] {postfix}",
            file=sys.stderr,
        )

    def advance(self, steps: int = 1, failures: int = 0):
        """Moves the bar forward by `steps` finished URLs, `failures` of which failed."""
        if self.pbar:
            self.pbar.update(steps)
            if failures:
                self.failures += failures
                self.pbar.set_postfix({"failures": self.failures}, refresh=False)

    def close(self):
        if self.pbar:
            self.pbar.close()
            self.pbar = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
