"""
Static rule tables (plain data) used by the pattern matchers.

- document_rules: document content markers, filename patterns, issuers
- subject_rules: subject regexes and body indicators (email-content matcher)
- email_type_rules: email type / category marker rules
- sender_rules: sender category address patterns
- sentiment_rules: weighted sentiment keyword groups
"""
