import sys

from cer.dispatcher import CommandResult, Dispatcher, run_external


def test_run_external_success():
    r = run_external([sys.executable, "-c", "raise SystemExit(0)"], quiet=True)
    assert r == CommandResult(ok=True, returncode=0)


def test_run_external_reports_exit_status():
    r = run_external([sys.executable, "-c", "raise SystemExit(3)"], quiet=True)
    assert r.ok is False
    assert r.returncode == 3
    assert r.error == "exit status 3"


def test_run_external_missing_binary_is_a_failure():
    r = run_external(["definitely-not-a-real-binary-cer"], quiet=True)
    assert r.ok is False
    assert r.returncode is None
    assert "FileNotFoundError" in r.error


def test_run_external_empty_command():
    assert run_external([]).ok is False


def test_run_external_env_overrides(monkeypatch):
    monkeypatch.setenv("CER_INHERITED", "parent")
    code = (
        "import os, sys; "
        "sys.exit(0 if os.environ['CER_INHERITED'] == 'parent' and os.environ['CER_EXTRA'] == 'x' else 1)"
    )
    r = run_external([sys.executable, "-c", code], env={"CER_EXTRA": "x"}, quiet=True)
    assert r.ok is True


def test_run_external_streams_output_unless_quiet(capfd):
    run_external([sys.executable, "-c", "print('loud')"])
    run_external([sys.executable, "-c", "print('hushed')"], quiet=True)
    out, _ = capfd.readouterr()
    assert "loud" in out
    assert "hushed" not in out


def test_dispatcher_commands():
    calls = []

    def runner(argv, env=None, quiet=False):
        calls.append((argv, env, quiet))
        return CommandResult(ok=True, returncode=0)

    d = Dispatcher(cli="dokku", rebuild_subcommand="ps:rebuild", reload_subcommand="nginx:build-config", env={"DOKKU_QUIET": "1"}, runner=runner)
    d.rebuild_app("api")
    d.reload_proxy("blog")

    assert calls == [
        (["dokku", "--quiet", "ps:rebuild", "api"], {"DOKKU_QUIET": "1"}, True),
        (["dokku", "--quiet", "nginx:build-config", "blog"], {"DOKKU_QUIET": "1"}, True),
    ]


def test_dispatcher_defaults_come_from_settings():
    d = Dispatcher()
    assert d.command(d.reload_subcommand, "blog") == ["dokku", "--quiet", "proxy:build-config", "blog"]
