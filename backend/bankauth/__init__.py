"""Login authorization gate for banking accounts."""
