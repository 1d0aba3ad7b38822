"""Tests for the upsert executor, secret/variable sync and the full pipeline."""
import logging

import pytest

from secretsync.sync.domains.errors import ConfigError, ConfigurationError
from secretsync.sync.domains.models import EventKind, UpsertResult
from secretsync.sync.workflows.secret_sync import (
    SyncContext,
    parse_secrets_json,
    parse_variables_json,
    run_sync,
    sync_secrets,
    sync_variables,
    upsert,
)


class TestUpsert:
    """Tests for the create -> update fallback."""

    def test_create_succeeds(self, fake_store):
        outcome = upsert(fake_store, "dev_DB_URL", "v", "secret/site/dev/", True)

        assert outcome.result is UpsertResult.CREATED
        assert outcome.path == "secret/site/dev/dev_DB_URL"
        assert fake_store.calls == [("create", "secret/site/dev/dev_DB_URL")]

    def test_create_fails_update_succeeds(self, make_store):
        store = make_store(existing={"p/dev_A": "old"})

        outcome = upsert(store, "dev_A", "new", "p/", True)

        assert outcome.result is UpsertResult.UPDATED
        assert store.calls == [("create", "p/dev_A"), ("update", "p/dev_A")]
        assert store.data["p/dev_A"] == "new"

    def test_both_fail(self, make_store, caplog):
        caplog.set_level(logging.INFO)
        store = make_store(fail_create={"p/dev_A"}, fail_update={"p/dev_A"})

        outcome = upsert(store, "dev_A", "v", "p/", True)

        assert outcome.result is UpsertResult.FAILED
        assert not outcome.ok
        assert "cannot update p/dev_A" in outcome.error
        assert store.calls == [("create", "p/dev_A"), ("update", "p/dev_A")]
        assert "Secret p/dev_A might already exist" in caplog.text
        assert "Failed to create or update secret: p/dev_A" in caplog.text

    def test_stored_path_keeps_full_name(self, fake_store):
        """The environment prefix stays in the stored path even when stripping is requested."""
        upsert(fake_store, "prod_API_KEY", "v", "secret/site/prod/", True)
        assert "secret/site/prod/prod_API_KEY" in fake_store.data


class TestSyncSecrets:
    """Tests for sync_secrets."""

    def test_counts_created_updated_and_failed(self, make_store):
        store = make_store(existing={"p/dev_B": "old"}, fail_create={"p/dev_C"}, fail_update={"p/dev_C"})
        values = {"dev_A": "1", "dev_B": "2", "dev_C": "3"}

        report = sync_secrets(store, values, ["dev_A", "dev_B", "dev_C"], "p/")

        assert report.synced == 2
        assert report.failed == 1
        assert report.attempted == 3
        assert [o.result for o in report.outcomes] == [
            UpsertResult.CREATED, UpsertResult.UPDATED, UpsertResult.FAILED
        ]

    def test_failure_does_not_stop_batch(self, make_store):
        store = make_store(fail_create={"p/dev_A"}, fail_update={"p/dev_A"})

        report = sync_secrets(store, {"dev_A": "1", "dev_B": "2"}, ["dev_A", "dev_B"], "p/")

        assert report.failed == 1
        assert report.synced == 1
        assert store.data == {"p/dev_B": "2"}

    def test_empty_value_skipped(self, fake_store):
        report = sync_secrets(fake_store, {"dev_A": ""}, ["dev_A"], "p/")

        assert report.skipped == 1
        assert report.attempted == 0
        assert fake_store.calls == []

    def test_no_names(self, fake_store):
        report = sync_secrets(fake_store, {"dev_A": "1"}, [], "p/")
        assert report.attempted == 0
        assert fake_store.calls == []


class TestSyncVariables:
    """Tests for sync_variables."""

    def test_syncs_every_variable_without_filtering(self, fake_store):
        variables = {"API_URL": "https://x", "TOKEN": "t", "dev_X": "y"}

        report = sync_variables(fake_store, variables, "env/site/main/")

        assert report.synced == 3
        assert fake_store.data == {
            "env/site/main/API_URL": "https://x",
            "env/site/main/TOKEN": "t",
            "env/site/main/dev_X": "y",
        }

    def test_empty_value_is_synced(self, fake_store):
        report = sync_variables(fake_store, {"EMPTY": ""}, "env/")
        assert report.synced == 1
        assert fake_store.data == {"env/EMPTY": ""}

    def test_empty_key_skipped(self, fake_store):
        report = sync_variables(fake_store, {"": "v", "A": "1"}, "env/")

        assert report.skipped == 1
        assert report.synced + report.failed == report.attempted == 1

    def test_counts_failures(self, make_store):
        store = make_store(fail_create={"env/A"}, fail_update={"env/A"})

        report = sync_variables(store, {"A": "1", "B": "2"}, "env/")

        assert (report.synced, report.failed) == (1, 1)


class TestParseJson:
    """Tests for the JSON input parsers."""

    def test_variables_render_like_jq(self):
        text = '{"S": "x", "N": 3, "F": 1.5, "B": true, "Z": null, "L": [1, 2], "O": {}}'
        result = parse_variables_json(text)

        assert result["S"] == "x"
        assert result["N"] == "3"
        assert result["F"] == "1.5"
        assert result["B"] == "true"
        assert result["Z"] == "null"
        assert result["L"] == "[\n  1,\n  2\n]"
        assert result["O"] == "{}"

    @pytest.mark.parametrize("text", ["", "   ", None, "{}"])
    def test_empty_variables(self, text):
        assert parse_variables_json(text) == {}

    def test_variables_must_be_object(self):
        with pytest.raises(ConfigError):
            parse_variables_json("[1, 2]")

    def test_invalid_json(self):
        with pytest.raises(ConfigError):
            parse_variables_json("{not json")

    def test_secrets_null_becomes_empty(self):
        assert parse_secrets_json('{"dev_A": null, "dev_B": "b"}') == {"dev_A": "", "dev_B": "b"}


class TestRunSync:
    """Tests for the full pipeline."""

    def test_secrets_then_variables(self, fake_store):
        context = SyncContext(repo_name="site", event_kind=EventKind.OTHER, base_ref="refs/heads/dev")
        secrets = {"dev_DB_URL": "db", "prod_DB_URL": "prod", "AWS_ACCESS_KEY_ID": "k"}
        variables = {"LOG_LEVEL": "info"}

        reports = run_sync(fake_store, context, secrets=secrets, variables=variables, ignore="")

        assert fake_store.calls == [
            ("create", "secret/site/dev/dev_DB_URL"),
            ("create", "env/site/dev/LOG_LEVEL"),
        ]
        assert reports["secrets"].synced == 1
        assert reports["variables"].synced == 1

    def test_pull_request_uses_head_ref(self, fake_store):
        context = SyncContext(
            repo_name="site", event_kind=EventKind.PULL_REQUEST, head_ref="feature", base_ref="refs/pull/4/merge"
        )

        run_sync(fake_store, context, secrets={"feature_TOKEN": "t"})

        assert fake_store.data == {"secret/site/feature/feature_TOKEN": "t"}

    def test_explicit_prefix_applies_to_both_stages(self, fake_store):
        context = SyncContext(
            repo_name="site", event_kind=EventKind.OTHER, base_ref="refs/heads/dev", explicit_prefix="custom/"
        )

        run_sync(fake_store, context, secrets={"dev_A": "1"}, variables={"B": "2"})

        assert set(fake_store.data) == {"custom/dev_A", "custom/B"}

    def test_missing_branch_aborts_before_any_store_call(self, fake_store):
        context = SyncContext(repo_name="site", event_kind=EventKind.OTHER, base_ref="")

        with pytest.raises(ConfigurationError):
            run_sync(fake_store, context, secrets={"dev_A": "1"}, variables={"B": "2"})

        assert fake_store.calls == []

    def test_variables_only_does_not_need_branch_filtering(self, fake_store):
        context = SyncContext(repo_name="site", event_kind=EventKind.OTHER, base_ref="refs/heads/main")

        reports = run_sync(fake_store, context, variables={"B": "2"})

        assert list(reports) == ["variables"]
        assert fake_store.data == {"env/site/main/B": "2"}
