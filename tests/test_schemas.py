"""Tests for queue message models."""

import json
import pytest
from pydantic import ValidationError

from snap_reindexer.schemas import (
    ReindexJob,
    SnapshotAction,
    SnapshotJob,
    SnapshotRecord,
    Topic,
    working_copy_name,
)


def test_working_copy_name():
    assert working_copy_name("logstash-2019.08.01") == "logstash-2019.08.01-base"


def test_topic_values():
    assert Topic.SNAPSHOT_OPS.value == "snapshot-ops"
    assert Topic.REINDEX_OPS.value == "reindex-ops"


def test_snapshot_job_wire_format():
    """Jobs serialize to flat JSON objects keyed by action, snapshot and index."""
    job = SnapshotJob(action=SnapshotAction.RESTORE, snapshot="logstash-20190801",
                      index="logstash-2019.08.01")
    assert json.loads(job.model_dump_json()) == {
        "action": "restore",
        "snapshot": "logstash-20190801",
        "index": "logstash-2019.08.01",
    }


def test_snapshot_job_restore_from_record():
    record = SnapshotRecord(snapshot="logstash-20190801", index="logstash-2019.08.01")
    job = SnapshotJob.restore(record)
    assert job.action == SnapshotAction.RESTORE
    assert job.snapshot == record.snapshot
    assert job.index == record.index


def test_snapshot_job_rejects_unknown_action():
    with pytest.raises(ValidationError):
        SnapshotJob.model_validate({"action": "merge", "snapshot": "s", "index": "i"})


def test_jobs_reject_missing_fields():
    with pytest.raises(ValidationError):
        ReindexJob.model_validate({"snapshot": "logstash-20190801"})

    with pytest.raises(ValidationError):
        SnapshotRecord(snapshot="", index="logstash-2019.08.01")


def test_reindex_job_source():
    job = ReindexJob(snapshot="logstash-20190801", index="logstash-2019.08.01")
    assert job.source == "logstash-2019.08.01-base"


def test_jobs_are_frozen():
    job = ReindexJob(snapshot="logstash-20190801", index="logstash-2019.08.01")
    with pytest.raises(ValidationError):
        job.index = "other"
