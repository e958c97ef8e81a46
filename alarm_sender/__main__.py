"""
Entry point for python -m alarm_sender
"""
if __name__ == "__main__":
    from .app.cli import run
    run()
