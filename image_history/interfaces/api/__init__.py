"""HTTP gallery API over the history store and preload cache."""
