"""Zodiac Cipher - daily Caesar-cipher puzzles with streaks, points and a community feed."""
