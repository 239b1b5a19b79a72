import json

from store_context import cli


def _write_fixtures(tmp_path):
    products = tmp_path / "products.csv"
    products.write_text(
        "Handle,Title,Tags,Variant SKU\n"
        "mainspring-barrel,Mainspring Barrel,parts,MS-100\n"
        "turntable-belt,Turntable Belt,belts,TB-1\n",
        encoding="utf-8",
    )
    pages = tmp_path / "pages.json"
    pages.write_text(json.dumps([{"title": "Shipping", "handle": "shipping", "body": "Ships in 2 days"}]))
    return products, pages


def test_cli_prints_ground_text_and_ids(tmp_path, capsys):
    products, pages = _write_fixtures(tmp_path)

    code = cli.main([
        "need a mainspring",
        "--products", str(products),
        "--pages", str(pages),
        "--remote-url", "",
        "--base-url", "https://shop.test",
        "--show-ids",
    ])

    out = capsys.readouterr().out
    assert code == 0
    assert "Products:\nTitle: Mainspring Barrel\nSKU: MS-100" in out
    assert "URL: https://shop.test/products/mainspring-barrel" in out
    assert "Turntable Belt" not in out
    # no page matches, so the first page is shown as fallback
    assert "Store pages:\nShipping" in out
    assert "products: mainspring-barrel" in out


def test_cli_builds_snapshot(tmp_path, capsys, monkeypatch):
    products, _ = _write_fixtures(tmp_path)
    target = tmp_path / "data" / "products.json"
    monkeypatch.setattr(cli.config, "PRODUCTS_JSON_PATH", target)

    assert cli.main(["--build-snapshot", str(products)]) == 0
    saved = json.loads(target.read_text(encoding="utf-8"))
    assert [entry["handle"] for entry in saved] == ["mainspring-barrel", "turntable-belt"]
