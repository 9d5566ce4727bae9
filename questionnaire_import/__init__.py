"""Questionnaire spreadsheet import: turn CSV/Excel questionnaires into bulk projects."""

__version__ = "0.1.0"
