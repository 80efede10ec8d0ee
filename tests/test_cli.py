from __future__ import annotations

import json

from fix_sampler.cli import EXIT_BAD_INPUT, EXIT_NO_SIGNAL, EXIT_OK, main


def test_replay_resolves(trace_csv, capsys):
    rc = main(["replay", "--csv", str(trace_csv)])
    out = capsys.readouterr().out

    assert rc == EXIT_OK
    assert "state=resolved, edge=good_enough, samples=3" in out
    assert "±18m" in out


def test_replay_json_and_export(trace_csv, tmp_path, capsys):
    out_csv = tmp_path / "history.csv"
    rc = main(["replay", "--csv", str(trace_csv), "--good-enough-m", "5", "--json", "--out", str(out_csv)])
    out = capsys.readouterr().out

    assert rc == EXIT_OK
    payload = json.loads(out[out.index("{"):])
    assert payload["accuracy_m"] == 6.0
    assert payload["edge"] == "deadline"
    assert out_csv.exists()


def test_replay_injected_permission_error(trace_csv, capsys):
    argv = ["replay", "--csv", str(trace_csv), "--start-index", "4"]
    rc = main(argv + ["--error-at-ms", "0", "--error-code", "permission_denied"])
    captured = capsys.readouterr()

    # start-index 4 leaves no fixes, so the error arrives with nothing recorded
    assert rc == EXIT_NO_SIGNAL
    assert "state=rejected" in captured.out
    assert captured.err.strip()


def test_replay_short_deadline_uses_best(trace_csv, capsys):
    rc = main(["replay", "--csv", str(trace_csv), "--deadline-seconds", "1.5"])
    out = capsys.readouterr().out

    assert rc == EXIT_OK
    assert "edge=deadline" in out
    assert "±45m" in out


def test_inspect(trace_csv, capsys):
    rc = main(["inspect", "--csv", str(trace_csv), "--json"])
    out = capsys.readouterr().out

    assert rc == EXIT_OK
    assert "skipped=2" in out
    payload = json.loads(out[out.index("{"):])
    assert payload["good_enough"] == 2


def test_bad_input(tmp_path, capsys):
    assert main(["replay", "--csv", str(tmp_path / "missing.csv")]) == EXIT_BAD_INPUT
    assert main(["replay", "--csv", str(tmp_path / "missing.csv"), "--deadline-seconds", "0"]) == EXIT_BAD_INPUT
