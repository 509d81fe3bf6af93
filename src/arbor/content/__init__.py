"""Bundled content processors.

A content processor turns one file into one template contribution::

    processor(url_path, stem, content, broker) -> Contribution

It raises ``ContentError`` for content it cannot handle; the compiler
then shows an inline notice in place of the file.
"""
