from typer.testing import CliRunner

from kubenode.cli.app import app
from kubenode.config.profile import load_config

runner = CliRunner()


def test_node_add_and_list(monkeypatch, tmp_path):
    monkeypatch.setenv("KUBENODE_HOME", str(tmp_path))

    result = runner.invoke(app, ["node", "add", "--profile", "demo"])
    assert result.exit_code == 0, result.output
    assert "demo-node-1" in result.output

    result = runner.invoke(app, ["node", "add", "workers", "--profile", "demo"])
    assert result.exit_code == 0, result.output
    assert [n.name for n in load_config("demo", home=tmp_path).nodes] == ["node-1", "workers"]

    result = runner.invoke(app, ["node", "list", "--profile", "demo"])
    assert result.exit_code == 0, result.output
    assert "node-1\tdemo-node-1\tNotCreated" in result.output
    assert "workers\tdemo-workers\tNotCreated" in result.output


def test_node_add_rejects_duplicates(monkeypatch, tmp_path):
    monkeypatch.setenv("KUBENODE_HOME", str(tmp_path))
    runner.invoke(app, ["node", "add", "w", "--profile", "demo"])
    result = runner.invoke(app, ["node", "add", "w", "--profile", "demo"])
    assert result.exit_code == 1


def test_unknown_profile_fails(monkeypatch, tmp_path):
    monkeypatch.setenv("KUBENODE_HOME", str(tmp_path))
    result = runner.invoke(app, ["node", "status", "node-1", "--profile", "ghost"])
    assert result.exit_code == 1


def test_status_of_node_never_created(monkeypatch, tmp_path):
    monkeypatch.setenv("KUBENODE_HOME", str(tmp_path))
    runner.invoke(app, ["node", "add", "--profile", "demo"])
    result = runner.invoke(app, ["node", "status", "node-1", "--profile", "demo"])
    assert result.exit_code == 0
    assert "node-1: NotCreated" in result.output
