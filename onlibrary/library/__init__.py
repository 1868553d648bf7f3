"""Library logic over a reader's snapshot: tags, lists, views, statistics and friends."""
