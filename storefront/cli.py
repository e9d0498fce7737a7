# storefront/cli.py
import click
import pandas as pd
from flask.cli import with_appcontext
from .extensions import db
from .services.campaign_service import build_campaign

# id lists and slugs must stay text ("1,2" would otherwise be parsed as a number)
_TEXT_COLUMNS = {"slug": str, "category_ids": str, "product_ids": str, "type": str}

def _read_table(path: str) -> pd.DataFrame:
    if path.lower().endswith((".xlsx", ".xls")):
        df = pd.read_excel(path, dtype=_TEXT_COLUMNS)
    else:
        df = pd.read_csv(path, dtype=_TEXT_COLUMNS)
    df.columns = df.columns.str.strip().str.lower()
    return df

def _row_payload(row) -> dict:
    return {k: (None if pd.isna(v) else v) for k, v in row.items()}

def import_campaign_rows(df: pd.DataFrame):
    """Validate and stage every row; returns (created, [(row_number, error)])."""
    created, errors = [], []
    for i, row in df.iterrows():
        try:
            c = build_campaign(_row_payload(row))
        except ValueError as e:
            errors.append((i + 2, str(e)))  # +2: header line and 1-based rows
            continue
        db.session.add(c)
        db.session.flush()
        created.append(c)
    return created, errors

@click.command("import-campaigns")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Validate rows without saving.")
@with_appcontext
def import_campaigns(path, dry_run):
    df = _read_table(path)
    created, errors = import_campaign_rows(df)
    for row_no, msg in errors:
        click.echo(f"row {row_no}: {msg}", err=True)
    if dry_run:
        db.session.rollback()
        click.echo(f"{len(created)} campaigns valid, {len(errors)} rejected (dry run)")
        return
    db.session.commit()
    click.echo(f"{len(created)} campaigns imported, {len(errors)} rejected")

def register_cli(app):
    app.cli.add_command(import_campaigns)
