"""Unit tests for the canonical document serializer."""

import copy

import pytest

from njgit.domain.models import JobSpecification
from njgit.hcl import InvalidJobError, escape_string, format_value, render_document, serialize
from njgit.normalization import JobNormalizer


def _render(payload, ignore_fields=()):
    spec = JobSpecification.model_validate(payload)
    return render_document(JobNormalizer(ignore_fields).normalize(spec))


class TestSerialize:
    """Tests for serialize function."""

    def test_web_job_document(self, web_payload, web_document):
        """Test the full rendering of a realistic job."""
        assert _render(web_payload) == web_document

    def test_rendering_is_deterministic(self, web_payload):
        assert _render(web_payload) == _render(web_payload)

    def test_default_namespace_is_omitted(self, web_payload):
        assert b"namespace" not in _render(web_payload)

    def test_other_namespace_is_written(self, worker_payload):
        document = _render(worker_payload)

        assert b'  namespace = "batch"\n' in document
        assert b'  region = "eu-west"\n' in document

    def test_tasks_rendered_in_name_order(self, worker_payload):
        """Test tasks appear sorted even when fetched out of order."""
        document = _render(worker_payload)

        assert document.index(b'task "cleanup"') < document.index(b'task "process"')

    def test_minimal_job(self):
        """Test a job with only an ID renders as an empty block."""
        assert serialize(JobSpecification(ID="empty")) == b'job "empty" {\n\n}\n'

    def test_missing_id_raises(self):
        with pytest.raises(InvalidJobError):
            serialize(JobSpecification(Type="service"))

    def test_empty_blocks_are_omitted(self):
        """Test tasks without driver config, env or resources render no empty blocks."""
        document = serialize(
            JobSpecification.model_validate(
                {
                    "ID": "app",
                    "TaskGroups": [
                        {
                            "Name": "g",
                            "Tasks": [
                                {"Name": "t", "Config": {"nested": {}}, "Env": {}, "Resources": {}}
                            ],
                        }
                    ],
                }
            )
        )

        assert b"config" not in document
        assert b"env" not in document
        assert b"resources" not in document

    def test_nested_config_renders_sub_blocks(self):
        document = serialize(
            JobSpecification.model_validate(
                {
                    "ID": "app",
                    "TaskGroups": [
                        {
                            "Name": "g",
                            "Tasks": [
                                {
                                    "Name": "t",
                                    "Config": {"logging": {"type": "syslog"}, "image": "redis"},
                                }
                            ],
                        }
                    ],
                }
            )
        )

        expected = (
            b"      config {\n"
            b"        image = \"redis\"\n"
            b"        logging {\n"
            b"          type = \"syslog\"\n"
            b"        }\n"
            b"      }\n"
        )
        assert expected in document

    def test_document_ignores_collection_order(self):
        """Test groups, tasks and map keys fetched in any order render the same bytes."""
        payload = {
            "ID": "shop",
            "Meta": {"team": "web", "owner": "ops", "tier": "1"},
            "TaskGroups": [
                {
                    "Name": "api",
                    "Tasks": [
                        {"Name": "server", "Driver": "docker", "Env": {"PORT": "80", "MODE": "prod"}},
                        {"Name": "sidecar", "Driver": "docker", "Env": {"Z": "1", "A": "2"}},
                    ],
                },
                {
                    "Name": "jobs",
                    "Meta": {"queue": "default", "batch": "true"},
                    "Tasks": [{"Name": "runner", "Driver": "exec"}],
                },
            ],
        }
        permuted = copy.deepcopy(payload)
        permuted["Meta"] = dict(reversed(list(permuted["Meta"].items())))
        permuted["TaskGroups"].reverse()
        for group in permuted["TaskGroups"]:
            group["Tasks"].reverse()
            if "Meta" in group:
                group["Meta"] = dict(reversed(list(group["Meta"].items())))
            for task in group["Tasks"]:
                if "Env" in task:
                    task["Env"] = dict(reversed(list(task["Env"].items())))

        assert _render(permuted) == _render(payload)

    def test_non_identifier_keys_are_quoted(self):
        document = serialize(
            JobSpecification.model_validate(
                {
                    "ID": "app",
                    "Meta": {"cost center": "42", "team": "a"},
                    "TaskGroups": [
                        {
                            "Name": "g",
                            "Tasks": [{"Name": "t", "Config": {"labels": {"com.example/x": "1"}}}],
                        }
                    ],
                }
            )
        )

        assert b'    "cost center" = "42"\n' in document
        assert b"    team = \"a\"\n" in document
        assert b'"com.example/x" = "1"\n' in document

    def test_ignored_fields_are_not_rendered(self, web_payload):
        document = _render(web_payload, ignore_fields=["Meta", "Update"])

        assert b"team" not in document
        assert b"update" not in document


class TestFormatValue:
    """Tests for format_value function."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("nginx", '"nginx"'),
            (True, "true"),
            (False, "false"),
            (8080, "8080"),
            (0.5, "0.5"),
            (1e-7, "1e-07"),
            (["a", 1, False], '["a", 1, false]'),
            ([], "[]"),
            (None, "null"),
        ],
    )
    def test_scalar_and_list_values(self, value, expected):
        assert format_value(value) == expected

    def test_non_finite_float_is_quoted(self):
        assert format_value(float("inf")) == '"inf"'


class TestEscapeString:
    """Tests for escape_string function."""

    def test_quotes_and_backslashes(self):
        assert escape_string('say "hi" \\ bye') == 'say \\"hi\\" \\\\ bye'

    def test_newlines_and_tabs(self):
        assert escape_string("a\nb\tc") == "a\\nb\\tc"

    def test_backslash_escaped_before_quote(self):
        """Test an existing backslash before a quote is not collapsed."""
        assert escape_string('\\"') == '\\\\\\"'
