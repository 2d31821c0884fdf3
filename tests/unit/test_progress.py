from __future__ import annotations

from unittest.mock import Mock, patch

from catalog_import.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


def test_tracker_creates_bar_on_tty():
    with patch("catalog_import.services.progress.is_tty_enabled", return_value=True), patch(
        "catalog_import.services.progress.tqdm"
    ) as mock_tqdm:
        tracker = ProgressTracker(10)

    assert tracker.enabled is True
    mock_tqdm.assert_called_once_with(
        total=10,
        desc="Writing products",
        unit="row",
        disable=False,
        leave=True,
        position=0,
        ncols=80,
        ascii=True,
    )


def test_tracker_without_tty_counts_only():
    with patch("catalog_import.services.progress.is_tty_enabled", return_value=False):
        with ProgressTracker(4) as tracker:
            tracker.advance(3)
            tracker.set_postfix(page=1)
    assert tracker.pbar is None
    assert tracker.done == 3


def test_advance_updates_and_close_releases_bar():
    bar = Mock()
    with patch("catalog_import.services.progress.is_tty_enabled", return_value=True), patch(
        "catalog_import.services.progress.tqdm", return_value=bar
    ):
        with ProgressTracker(4) as tracker:
            tracker.advance(2)
    bar.update.assert_called_once_with(2)
    bar.close.assert_called_once()
    assert tracker.pbar is None
