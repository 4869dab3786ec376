"""
Search indexing and query engine package.

- text: markdown normalization and heading extraction
- indexer: content tree scan and artifact writer
- analyzers: tokenizers and filters (lowercase, forward prefixes)
- index: in-memory multi-field prefix index
- ranking: field-weighted merge of per-field hits
- highlight: term highlighting and content snippets
- engine: lazy artifact loading and query execution
- debounce / session: interactive search surface state
"""
