"""Tests for YAML configuration loading and validation."""
import os
import shutil
import tempfile
import unittest

from santa.core.config import (
    SmtpConfig,
    load_email_config,
    load_participants,
    parse_email_config,
    parse_participants,
    validate_participants,
)
from santa.core.errors import ConfigError
from santa.core.types import Participant

PARTICIPANTS_YAML = """\
---
participants:
  - name: Alice
    email: alice@example.com
    address: |-
      Alice
      1 Elm Street
    excludes:
      - Bob
  - name: Bob
    email: bob@example.com
    address: 2 Oak Avenue
    excludes: []
  - name: Carol
    email: carol@example.com
    address: 3 Pine Road
"""

EMAILCONF_YAML = """\
---
msghdr:
  from: 'Santa <santa@example.com>'
  subject: 'Your match'
msgbody: |
  Hi @FROM@, you give to @TO@.
smtpconf:
  host: smtp.example.com
  ssl: 1
  sasl_username: santa
  sasl_password: secret
"""


class _TempDirCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _write(self, name, text):
        path = os.path.join(self.tmpdir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path


class TestLoadParticipants(_TempDirCase):

    def test_loads_all_fields(self):
        people = load_participants(self._write("p.yml", PARTICIPANTS_YAML))
        self.assertEqual([p.name for p in people], ["Alice", "Bob", "Carol"])
        alice = people[0]
        self.assertEqual(alice.email, "alice@example.com")
        self.assertEqual(alice.address, "Alice\n1 Elm Street")
        self.assertEqual(alice.excludes, frozenset({"Bob"}))
        self.assertEqual(alice.display, "Alice <alice@example.com>")

    def test_missing_excludes_means_none(self):
        people = load_participants(self._write("p.yml", PARTICIPANTS_YAML))
        self.assertEqual(people[2].excludes, frozenset())

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_participants(os.path.join(self.tmpdir, "nope.yml"))

    def test_bad_yaml(self):
        path = self._write("p.yml", "participants: [unclosed\n")
        with self.assertRaises(ConfigError):
            load_participants(path)


class TestParseParticipants(unittest.TestCase):

    def _record(self, **overrides):
        rec = {"name": "A", "email": "a@example.com", "address": "1 St"}
        rec.update(overrides)
        return rec

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigError):
            parse_participants(["A", "B"])

    def test_empty_list(self):
        with self.assertRaises(ConfigError):
            parse_participants({"participants": []})

    def test_missing_required_field(self):
        for field in ("name", "email", "address"):
            rec = self._record()
            del rec[field]
            with self.subTest(field=field):
                with self.assertRaises(ConfigError) as ctx:
                    parse_participants({"participants": [rec]})
                self.assertIn(field, str(ctx.exception))

    def test_excludes_must_be_list(self):
        with self.assertRaises(ConfigError):
            parse_participants({"participants": [self._record(excludes="B")]})

    def test_unknown_exclusion(self):
        data = {"participants": [
            self._record(name="A", excludes=["Zed"]),
            self._record(name="B"),
        ]}
        with self.assertRaises(ConfigError) as ctx:
            parse_participants(data)
        self.assertIn("Zed", str(ctx.exception))

    def test_numeric_names_in_excludes(self):
        data = {"participants": [
            self._record(name=123, excludes=[456]),
            self._record(name=456),
            self._record(name="C"),
        ]}
        people = parse_participants(data)
        self.assertEqual(people[0].name, "123")
        self.assertEqual(people[0].excludes, frozenset({"456"}))

    def test_boolean_exclude_entry_rejected(self):
        data = {"participants": [
            self._record(name="A", excludes=[True]),
            self._record(name="B"),
        ]}
        with self.assertRaises(ConfigError):
            parse_participants(data)

    def test_boolean_name_rejected(self):
        with self.assertRaises(ConfigError):
            parse_participants({"participants": [self._record(name=False)]})

    def test_malformed_email_rejected(self):
        with self.assertRaises(ConfigError) as ctx:
            parse_participants({"participants": [self._record(email="a@b@c")]})
        self.assertIn("invalid email address", str(ctx.exception))

    def test_duplicate_names(self):
        data = {"participants": [self._record(), self._record()]}
        with self.assertRaises(ConfigError):
            parse_participants(data)


class TestValidateParticipants(unittest.TestCase):

    def test_self_exclusion_is_allowed(self):
        validate_participants([
            Participant("A", "a@x", "1", frozenset({"A"})),
            Participant("B", "b@x", "2"),
        ])

    def test_empty(self):
        with self.assertRaises(ConfigError):
            validate_participants([])


class TestEmailConfig(_TempDirCase):

    def test_loads_headers_body_and_smtp(self):
        cfg = load_email_config(self._write("e.yml", EMAILCONF_YAML))
        self.assertEqual(cfg.header.from_addr, "Santa <santa@example.com>")
        self.assertEqual(cfg.header.subject, "Your match")
        self.assertEqual(cfg.body, "Hi @FROM@, you give to @TO@.\n")
        self.assertEqual(cfg.smtp.host, "smtp.example.com")
        self.assertTrue(cfg.smtp.use_ssl)
        self.assertEqual(cfg.smtp.resolved_port, 465)
        self.assertEqual(cfg.smtp.sasl_username, "santa")
        self.assertEqual(cfg.smtp.sasl_password, "secret")

    def test_missing_msghdr_field(self):
        data = {"msghdr": {"from": "x@example.com"}, "msgbody": "hi"}
        with self.assertRaises(ConfigError) as ctx:
            parse_email_config(data)
        self.assertIn("subject", str(ctx.exception))

    def test_missing_body(self):
        data = {"msghdr": {"from": "x@example.com", "subject": "s"}}
        with self.assertRaises(ConfigError):
            parse_email_config(data)

    def test_smtpconf_optional(self):
        data = {"msghdr": {"from": "x@example.com", "subject": "s"}, "msgbody": "hi"}
        cfg = parse_email_config(data)
        self.assertEqual(cfg.smtp, SmtpConfig())
        self.assertEqual(cfg.smtp.resolved_port, 25)

    def test_starttls_default_port(self):
        data = {
            "msghdr": {"from": "x@example.com", "subject": "s"},
            "msgbody": "hi",
            "smtpconf": {"ssl": "starttls"},
        }
        cfg = parse_email_config(data)
        self.assertTrue(cfg.smtp.use_starttls)
        self.assertFalse(cfg.smtp.use_ssl)
        self.assertEqual(cfg.smtp.resolved_port, 587)

    def test_explicit_port_wins(self):
        data = {
            "msghdr": {"from": "x@example.com", "subject": "s"},
            "msgbody": "hi",
            "smtpconf": {"ssl": 1, "port": "2465"},
        }
        self.assertEqual(parse_email_config(data).smtp.resolved_port, 2465)

    def test_bad_port(self):
        data = {
            "msghdr": {"from": "x@example.com", "subject": "s"},
            "msgbody": "hi",
            "smtpconf": {"port": "smtp"},
        }
        with self.assertRaises(ConfigError):
            parse_email_config(data)

    def test_unknown_smtp_key_is_ignored(self):
        data = {
            "msghdr": {"from": "x@example.com", "subject": "s"},
            "msgbody": "hi",
            "smtpconf": {"host": "mx", "colour": "red"},
        }
        with self.assertLogs("santa.core.config", level="WARNING"):
            cfg = parse_email_config(data)
        self.assertEqual(cfg.smtp.host, "mx")


if __name__ == "__main__":
    unittest.main()
