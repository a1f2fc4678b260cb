"""Simple Binary Encoding: templates, decoding, views and XML schema conversion."""

__all__ = ["codec", "template", "view", "xmlschema", "xmltoproto"]