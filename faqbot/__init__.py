"""SchemaFAQ: FAQPage structured data generation for web pages."""

__version__ = "1.0.0"
