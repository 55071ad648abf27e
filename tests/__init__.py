"""Test suite for bunny_stream."""
