"""Stage catalogs: normalizers and pre-tokenizers.

Each family module exposes its stage models, an ordered signature table, a
descriptor table and the ``Family`` that binds them, plus the family's
string-level entry points (``normalize_str`` / ``pre_tokenize_str``).
"""
