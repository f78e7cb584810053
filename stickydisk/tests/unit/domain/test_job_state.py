"""
Unit tests for the JobState record.
"""

from stickydisk.domain.value_objects import JobState, JobStateField


class TestJobState:
    """Tests for JobState value object."""

    def test_empty_state(self):
        state = JobState.from_dict({})

        assert not state.has_mount_attempt
        assert not state.eligible_for_commit
        assert state.error is False
        assert state.to_dict() == {}

    def test_round_trip_of_full_record(self):
        data = {
            "STICKYDISK_PATH": "/nix",
            "STICKYDISK_KEY": "nix-store",
            "STICKYDISK_EXPOSE_ID": "expose-1",
            "STICKYDISK_INTERNAL_MOUNT": "/mnt/stickydisk/expose-1",
            "STICKYDISK_DEVICE": "/dev/vdb",
            "STICKYDISK_ERROR": "true",
        }

        state = JobState.from_dict(data)

        assert state.sticky_disk_path == "/nix"
        assert state.internal_mount == "/mnt/stickydisk/expose-1"
        assert state.error is True
        assert state.to_dict() == data

    def test_eligible_for_commit_requires_expose_id_and_no_error(self):
        assert JobState(sticky_disk_path="/nix", expose_id="expose-1").eligible_for_commit
        assert not JobState(sticky_disk_path="/nix").eligible_for_commit
        assert not JobState(sticky_disk_path="/nix", expose_id="expose-1", error=True).eligible_for_commit

    def test_error_flag_only_true_for_true(self):
        assert JobState.from_dict({JobStateField.ERROR.value: "TRUE"}).error is True
        assert JobState.from_dict({JobStateField.ERROR.value: "false"}).error is False
        assert JobState.from_dict({JobStateField.ERROR.value: ""}).error is False
