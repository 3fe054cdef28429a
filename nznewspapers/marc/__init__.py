"""MARC21 parsing: partial dates, places and newspaper field extraction."""
