# File: tests/test_progress.py

import pytest

from odm_bridge.services.progress import derive_progress, progress_report


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"upload_progress": 0, "resize_progress": 0, "running_progress": 0},
        {"upload_progress": 0.2, "resize_progress": 0.7, "running_progress": 0.1},
    ],
)
def test_completed_is_always_100(fields):
    p = derive_progress({"status": 40, **fields})
    assert p.progress == 100
    assert p.is_complete is True
    assert p.has_error is False
    assert p.stage == "Complete"


def test_running_weights_upload_resize_processing():
    p = derive_progress(
        {"status": 20, "upload_progress": 1, "resize_progress": 1, "running_progress": 0.4}
    )
    assert p.progress == 70
    assert p.stage == "Processing orthophoto..."
    assert not p.is_complete


def test_running_progress_rounds_halves_up():
    p = derive_progress(
        {"status": 20, "upload_progress": 1, "resize_progress": 1, "running_progress": 0.25}
    )
    assert p.progress == 63

    report = progress_report(
        {"status": 20, "upload_progress": 1, "resize_progress": 0.125, "running_progress": 0},
        task_id="abc",
        project_id=1,
    )
    assert report["resize_progress"] == 13


def test_running_stage_follows_first_unfinished_step():
    uploading = derive_progress({"status": 20, "upload_progress": 0.5})
    assert uploading.progress == 15
    assert uploading.stage == "Uploading images..."

    resizing = derive_progress({"status": 20, "upload_progress": 1, "resize_progress": 0.5})
    assert resizing.progress == 40
    assert resizing.stage == "Resizing images..."


def test_running_with_missing_fractions_counts_them_as_zero():
    p = derive_progress({"status": 20, "upload_progress": None})
    assert p.progress == 0
    assert p.stage == "Uploading images..."


@pytest.mark.parametrize(
    "status, stage, has_error",
    [
        (10, "Queued for processing", False),
        (30, "Failed", True),
        (50, "Canceled", False),
        (99, "Status: 99", False),
    ],
)
def test_other_statuses_are_zero(status, stage, has_error):
    p = derive_progress(
        {"status": status, "upload_progress": 1, "resize_progress": 1, "running_progress": 1}
    )
    assert p.progress == 0
    assert p.stage == stage
    assert p.has_error is has_error
    assert p.is_complete is False


def test_progress_report_exposes_sub_progress_as_percentages():
    task = {
        "status": 20,
        "upload_progress": 1,
        "resize_progress": 0.25,
        "running_progress": 0,
        "images_count": 12,
        "name": "Upload_12imgs",
    }
    report = progress_report(task, task_id="abc", project_id=4)
    assert report["task_id"] == "abc"
    assert report["project_id"] == "4"
    assert report["progress"] == 35
    assert report["upload_progress"] == 100
    assert report["resize_progress"] == 25
    assert report["running_progress"] == 0
    assert report["images_count"] == 12
    assert report["raw_data"] is task
