"""Core library: envelope crypto, documents, codecs and storage."""
