"""Command line interface (``python -m questionnaire_import`` / ``questionnaire-import``)."""
