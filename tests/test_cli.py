import pytest

from dirprobe import cli
from dirprobe.models import ScanStats


@pytest.fixture
def lists(tmp_path):
    words = tmp_path / "words.txt"
    words.write_text("admin\nlogin\n")
    exts = tmp_path / "exts.txt"
    exts.write_text("\n.php")
    return str(words), str(exts)


@pytest.fixture
def captured(monkeypatch):
    """Replace the scheduler so no network traffic happens."""
    targets = []

    class FakeScheduler:
        def __init__(self, target):
            targets.append(target)

        async def run(self):
            return ScanStats()

    monkeypatch.setattr(cli, "ProbeScheduler", FakeScheduler)
    return targets


def test_runs_with_valid_inputs(lists, captured):
    words, exts = lists
    rc = cli.main(["-u", "http://example.com/app", "-f", words, "-e", exts, "-t", "4",
                   "-H", "User-Agent : test | X-Foo:bar"])

    assert rc == 0
    target = captured[0]
    assert str(target.base_url) == "http://example.com/app"
    assert target.words == ("admin", "login", "")
    assert target.extensions == ("", ".php")
    assert target.headers == {"User-Agent": "test", "X-Foo": "bar"}
    assert target.concurrency == 4
    assert target.timeout_seconds == 10
    assert target.verify_tls is False
    assert target.follow_redirects is True


def test_optional_flags(lists, captured):
    words, exts = lists
    rc = cli.main(["-u", "https://example.com/", "-f", words, "-e", exts,
                   "--skip-trailing-blank", "--verify-tls", "--no-follow-redirects"])

    assert rc == 0
    target = captured[0]
    assert target.words == ("admin", "login")
    assert target.extensions == ("", ".php")
    assert target.concurrency == 1
    assert target.verify_tls is True
    assert target.follow_redirects is False


@pytest.mark.parametrize("extra", [
    [],
    ["-u", "http://example.com/"],
    ["-u", "not a url", "-f", "WORDS", "-e", "EXTS"],
    ["-u", "http://example.com/", "-f", "WORDS", "-e", "EXTS", "-t", "0"],
    ["-u", "http://example.com/", "-f", "WORDS", "-e", "EXTS", "-H", "no colon here"],
    ["-u", "http://example.com/", "-f", "/does/not/exist", "-e", "EXTS"],
])
def test_configuration_errors_exit_before_scanning(extra, lists, captured, capsys):
    words, exts = lists
    argv = [words if a == "WORDS" else exts if a == "EXTS" else a for a in extra]

    rc = cli.main(argv)

    assert rc == 2
    assert captured == []
    assert "usage: dirprobe" in capsys.readouterr().err
