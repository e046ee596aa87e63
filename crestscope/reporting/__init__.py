"""Result files and run summaries."""
