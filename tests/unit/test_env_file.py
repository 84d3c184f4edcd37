from __future__ import annotations

from newspush.utils.env import load_env_file, parse_env_lines


def test_parse_env_lines_handles_comments_quotes_and_export():
  lines = [
    "# local overrides",
    "",
    "NEWSPUSH_DEBUG=true",
    "export NEWSPUSH_PUSH_VAPID_SUB='mailto:ops@example.com'",
    'NEWSPUSH_ALLOWED_ORIGINS = "https://a.example,https://b.example"',
    "NOT A PAIR",
    "=orphan",
    "NEWSPUSH_DEBUG=false",
  ]

  assert parse_env_lines(lines) == {
    "NEWSPUSH_DEBUG": "false",
    "NEWSPUSH_PUSH_VAPID_SUB": "mailto:ops@example.com",
    "NEWSPUSH_ALLOWED_ORIGINS": "https://a.example,https://b.example",
  }


def test_parse_env_lines_keeps_equals_in_values():
  assert parse_env_lines(["NEWSPUSH_PG_DSN=postgresql://u:p@db/news?sslmode=require&x=1"]) == {"NEWSPUSH_PG_DSN": "postgresql://u:p@db/news?sslmode=require&x=1"}


def test_load_env_file_respects_existing_values(tmp_path):
  env_file = tmp_path / ".env"
  env_file.write_text("NEWSPUSH_DEBUG=true\nNEWSPUSH_LOG_HTTP_4XX=1\n", encoding="utf-8")
  environ = {"NEWSPUSH_DEBUG": "false"}

  applied = load_env_file(env_file, environ=environ)

  assert applied == {"NEWSPUSH_LOG_HTTP_4XX": "1"}
  assert environ == {"NEWSPUSH_DEBUG": "false", "NEWSPUSH_LOG_HTTP_4XX": "1"}


def test_load_env_file_override_replaces_existing(tmp_path):
  env_file = tmp_path / ".env"
  env_file.write_text("NEWSPUSH_DEBUG=true\n", encoding="utf-8")
  environ = {"NEWSPUSH_DEBUG": "false"}

  load_env_file(env_file, override=True, environ=environ)

  assert environ["NEWSPUSH_DEBUG"] == "true"


def test_load_env_file_missing_file_is_noop(tmp_path):
  environ: dict[str, str] = {}

  assert load_env_file(tmp_path / "absent.env", environ=environ) == {}
  assert environ == {}
