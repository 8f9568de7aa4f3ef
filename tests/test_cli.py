import json

from statement_scan.cli.main import main

PROVIDER_VARS = (
    "GEMINI_API_KEY",
    "OPENROUTER_API_KEY",
    "OPEN_ROUTER_API_KEY",
    "open_router_api_key",
    "GROQ_API_KEY",
    "CLOUDFLARE_ACCOUNT_ID",
    "CLOUDFLARE_API_TOKEN",
    "OLLAMA_URL",
    "PROVIDER_ORDER",
)


def _clear_provider_env(monkeypatch):
    for name in PROVIDER_VARS:
        monkeypatch.delenv(name, raising=False)


def test_normalize_reads_model_text_from_file(tmp_path, capsys):
    raw = tmp_path / "model.txt"
    raw.write_text(
        "Here you go:\n```json\n"
        '[{"date":"2025-02-03","description":"Coles","category":"Groceries","amount":"12.345"}]\n```',
        encoding="utf-8",
    )

    code = main(["normalize", "--input", str(raw), "--member", "Alice", "--member", "Bob"])

    assert code == 0
    [tx] = json.loads(capsys.readouterr().out)
    assert tx["amount"] == 12.35
    assert tx["category"] == "groceries"
    assert tx["payer"] == "Alice"
    assert tx["involved"] == ["Alice", "Bob"]


def test_normalize_with_nothing_extracted(tmp_path, capsys):
    raw = tmp_path / "model.txt"
    raw.write_text("No transactions found.", encoding="utf-8")
    assert main(["normalize", "--input", str(raw)]) == 1
    assert json.loads(capsys.readouterr().out) == []


def test_providers_lists_chain_without_secrets(tmp_path, monkeypatch, capsys):
    _clear_provider_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GROQ_API_KEY", "very-secret")

    assert main(["providers"]) == 0
    out = capsys.readouterr().out
    assert "very-secret" not in out
    [entry] = json.loads(out)
    assert entry["name"] == "groq"
    assert entry["kind"] == "openai"


def test_providers_without_credentials(tmp_path, monkeypatch, capsys):
    _clear_provider_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    assert main(["providers"]) == 1
    assert json.loads(capsys.readouterr().out) == []


def test_extract_without_credentials_exits_2(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    image = tmp_path / "shot.png"
    image.write_bytes(b"\x89PNG")
    assert main(["extract", "--image", str(image)]) == 2


def test_cloudflare_agree_without_cloudflare_exits_2(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    assert main(["cloudflare-agree"]) == 2


def test_normalize_missing_input_file_exits_2(tmp_path, capsys):
    assert main(["normalize", "--input", str(tmp_path / "missing.txt")]) == 2
    assert capsys.readouterr().out == ""
