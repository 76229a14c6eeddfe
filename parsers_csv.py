"""
Input parsers for the CutPlan tool.
Reads cut lists (one row per piece size, with a quantity) from CSV data.
"""

import csv
import io
import logging
from typing import List, Dict, Any, Tuple, Union
import pandas as pd
from data_models import Piece, expand_pieces

logger = logging.getLogger(__name__)

# Accepted header spellings, matched case-insensitively
COLUMN_ALIASES = {
    'width': ['width', 'width (mm)', 'largeur', 'w'],
    'height': ['height', 'height (mm)', 'length', 'length (mm)', 'hauteur', 'longueur', 'h'],
    'quantity': ['quantity', 'qty', 'quantité', 'quantite', 'count'],
    'name': ['name', 'label', 'piece', 'nom', 'description'],
}
REQUIRED_COLUMNS = ['width', 'height']


def _resolve_columns(columns) -> Dict[str, str]:
    """Map canonical field names to the headers present in the file."""
    lookup = {str(col).strip().lower(): col for col in columns}
    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lookup:
                resolved[field] = lookup[alias]
                break
    return resolved


def load_pieces_csv(source: Union[str, io.IOBase], start_id: int = 1) -> Tuple[List[Piece], List[str]]:
    """
    Load a cut list and expand each row into Piece instances.

    Args:
        source: Path or file-like object holding comma, semicolon or tab separated data
        start_id: Identifier for the first created piece

    Returns:
        Tuple of (pieces, error messages for skipped rows)

    Expected columns:
        - Width: Piece width in mm
        - Height (or Length): Piece height in mm
        - Quantity: Optional, defaults to 1
        - Name: Optional piece name
    """
    try:
        df = pd.read_csv(source, sep=None, engine='python', skip_blank_lines=True)
    except FileNotFoundError:
        logger.error(f"Cut list file not found: {source}")
        raise
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error, UnicodeDecodeError) as e:
        logger.error(f"Could not parse cut list: {e}")
        return [], [f"Could not read the cut list: {e}"]

    columns = _resolve_columns(df.columns)
    missing = [field for field in REQUIRED_COLUMNS if field not in columns]
    if missing:
        return [], [f"Missing required columns: {', '.join(missing)}"]

    pieces: List[Piece] = []
    errors: List[str] = []
    next_id = start_id

    for index, row in df.iterrows():
        line = index + 2  # header is line 1
        try:
            width = row[columns['width']]
            height = row[columns['height']]
            if pd.isna(width) or pd.isna(height):
                errors.append(f"Line {line}: width and height are required")
                continue

            width = int(float(width))
            height = int(float(height))

            quantity = 1
            if 'quantity' in columns and not pd.isna(row[columns['quantity']]):
                quantity = int(float(row[columns['quantity']]))

            name = ""
            if 'name' in columns and not pd.isna(row[columns['name']]):
                name = str(row[columns['name']]).strip()

            if width <= 0 or height <= 0 or quantity <= 0:
                errors.append(f"Line {line}: dimensions and quantity must be positive")
                continue

            row_pieces = expand_pieces(width, height, quantity, next_id, name)
            pieces.extend(row_pieces)
            next_id += len(row_pieces)

        except (ValueError, TypeError) as e:
            logger.error(f"Error processing cut list line {line}: {e}")
            errors.append(f"Line {line}: {e}")
            continue

    logger.info(f"Loaded {len(pieces)} pieces from cut list ({len(errors)} rows skipped)")
    return pieces, errors


def load_pieces_text(text: str, start_id: int = 1) -> Tuple[List[Piece], List[str]]:
    """Load a cut list pasted as text."""
    if not text or not text.strip():
        return [], ["The cut list is empty"]
    return load_pieces_csv(io.StringIO(text.strip()), start_id)


def group_pieces(pieces: List[Piece]) -> List[Dict[str, Any]]:
    """
    Group identical piece sizes for display.

    Returns:
        One dict per width x height (and name) in first-seen order, with the
        count and the list indices of its instances
    """
    groups: Dict[Tuple[int, int, str], Dict[str, Any]] = {}
    for index, piece in enumerate(pieces):
        key = (piece.width, piece.height, piece.name)
        if key not in groups:
            groups[key] = {'width': piece.width, 'height': piece.height,
                           'name': piece.name, 'count': 0, 'indices': []}
        groups[key]['count'] += 1
        groups[key]['indices'].append(index)
    return list(groups.values())
