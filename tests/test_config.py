import json

import pytest

from auditchain.config import ConfigError, LeaderConfig, load_peers


def test_load_peers_single_line(tmp_path):
    path = tmp_path / "peers.json"
    path.write_text('["10.0.0.1:50051", "10.0.0.2:50051"]')
    assert load_peers(path) == ["10.0.0.1:50051", "10.0.0.2:50051"]


def test_load_peers_multi_line(tmp_path):
    path = tmp_path / "peers.json"
    path.write_text('[\n  "a:1",\n  "b:2"\n]\n')
    assert load_peers(path) == ["a:1", "b:2"]


def test_load_peers_empty_array(tmp_path):
    path = tmp_path / "peers.json"
    path.write_text("[]")
    assert load_peers(path) == []


def test_load_peers_skips_empty_tokens(tmp_path):
    path = tmp_path / "peers.json"
    path.write_text('["a:1",, "b:2",]')
    assert load_peers(path) == ["a:1", "b:2"]


def test_load_peers_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Unable to open peers file"):
        load_peers(tmp_path / "absent.json")


def _write(tmp_path, data):
    path = tmp_path / "leader.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


def test_leader_config_load(tmp_path):
    path = _write(
        tmp_path,
        {"leader_addr": "h:1", "batch_size": 5, "batch_interval_s": 30},
    )
    assert LeaderConfig.load(path) == LeaderConfig("h:1", 5, 30)


def test_leader_config_missing_field(tmp_path):
    path = _write(tmp_path, {"leader_addr": "h:1", "batch_size": 5})
    with pytest.raises(ConfigError, match="missing one of"):
        LeaderConfig.load(path)


def test_leader_config_bad_json(tmp_path):
    path = _write(tmp_path, "{oops")
    with pytest.raises(ConfigError, match="Error parsing leader.json"):
        LeaderConfig.load(path)


def test_leader_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot open leader.json"):
        LeaderConfig.load(tmp_path / "absent.json")


def test_leader_config_wrong_types(tmp_path):
    path = _write(
        tmp_path,
        {"leader_addr": 1, "batch_size": 5, "batch_interval_s": 30},
    )
    with pytest.raises(ConfigError):
        LeaderConfig.load(path)
    path = _write(
        tmp_path,
        {"leader_addr": "h:1", "batch_size": "five", "batch_interval_s": 30},
    )
    with pytest.raises(ConfigError):
        LeaderConfig.load(path)