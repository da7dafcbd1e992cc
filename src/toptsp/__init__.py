"""TopTSP competition API."""
