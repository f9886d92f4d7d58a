"""Endpoint groups mounted by :func:`faqbot.api.app.create_app`."""
