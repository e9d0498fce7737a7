"""
flask import-campaigns
"""

from storefront.model import Campaign

CSV = """name,slug,type,discount_percent,buy_quantity,get_quantity,category_ids,starts_at,ends_at
Summer,summer,PERCENTAGE,15,,,,2026-01-01T00:00:00,2099-01-01T00:00:00
Three for two,three-for-two,BUY_X_GET_Y,,3,2,"1,2",2026-01-01T00:00:00,2099-01-01T00:00:00
Broken,broken,PERCENTAGE,150,,,,2026-01-01T00:00:00,2099-01-01T00:00:00
"""


def _write(tmp_path):
    path = tmp_path / "campaigns.csv"
    path.write_text(CSV, encoding="utf-8")
    return str(path)


def test_import_campaigns(app, tmp_path):
    result = app.test_cli_runner().invoke(args=["import-campaigns", _write(tmp_path)])

    assert result.exit_code == 0
    assert "2 campaigns imported, 1 rejected" in result.output
    assert "row 4: discount_percent must be > 0 and <= 100" in result.output

    bxgy = Campaign.query.filter_by(slug="three-for-two").one()
    assert bxgy.buy_quantity == 3
    assert bxgy.category_ids == "1,2"
    assert bxgy.apply_to_all is True


def test_import_campaigns_dry_run(app, tmp_path):
    result = app.test_cli_runner().invoke(args=["import-campaigns", _write(tmp_path), "--dry-run"])

    assert result.exit_code == 0
    assert "2 campaigns valid, 1 rejected (dry run)" in result.output
    assert Campaign.query.count() == 0
