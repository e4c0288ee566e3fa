"""
hashtag-radar core package.

Modules
───────
models        Pydantic data models (Message, TagCount, TagGroup, Page, …)
errors        InvalidArgument / UpstreamFailure / StoreError
store         MessageStore protocol consumed by the core
tokenizer     #tag extraction
aggregator    budgeted tag counting over channels and teams
grouping      prefix grouping of counted tags
paginator     bounds-safe page slicing
service       HashtagService, the public query contract
sqlite_store  SQLite-backed MessageStore
"""
