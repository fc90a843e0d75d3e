"""Stagecraft package.

Composable normalizer and pre-tokenizer pipelines. Host-facing classes live in
``stagecraft.normalizers`` and ``stagecraft.pre_tokenizers``. Importing either of
them configures the root logger through ``stagecraft.utils.get_logger``.
"""

__all__: list[str] = []
