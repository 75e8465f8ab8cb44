from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

from rvtools_merge.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


def test_tracker_creates_bar_on_tty():
    with patch("rvtools_merge.services.progress.is_tty_enabled", return_value=True), \
         patch("rvtools_merge.services.progress.tqdm") as mock_tqdm:
        tracker = ProgressTracker(3, description="Validating files")
        assert tracker.enabled is True
        mock_tqdm.assert_called_once_with(
            total=3,
            desc="Validating files",
            unit="file",
            leave=True,
            position=0,
            ncols=80,
            ascii=True,
        )


def test_tracker_disabled_without_tty():
    with patch("rvtools_merge.services.progress.is_tty_enabled", return_value=False), \
         patch("rvtools_merge.services.progress.tqdm") as mock_tqdm:
        with ProgressTracker(3) as tracker:
            tracker.start_file(Path("a.xlsx"))
            tracker.finish_file()
            tracker.set_postfix(valid=1)
        assert tracker.pbar is None
        assert tracker.current_file == 1
        mock_tqdm.assert_not_called()


def test_tracker_updates_bar():
    mock_pbar = Mock()
    with patch("rvtools_merge.services.progress.is_tty_enabled", return_value=True), \
         patch("rvtools_merge.services.progress.tqdm", return_value=mock_pbar):
        with ProgressTracker(2, description="Reading files") as tracker:
            tracker.start_file(Path("data/a.xlsx"))
            mock_pbar.set_description.assert_called_with("Reading files (a.xlsx)")
            tracker.finish_file()
            mock_pbar.update.assert_called_once_with(1)
            mock_pbar.set_description.assert_called_with("Reading files")
            tracker.set_postfix(valid=1, invalid=0)
            mock_pbar.set_postfix.assert_called_once_with(valid=1, invalid=0)
        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
