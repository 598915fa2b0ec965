"""Test package for Quiz Duel.

The core tests drive the quiz run, scheduler and question pipeline with a
fake clock and never open a window. The smoke tests use pygame's dummy video
driver so they also run headlessly. To run these tests, execute ``pytest``
from the project root.
"""
