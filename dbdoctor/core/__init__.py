"""
dbdoctor Core Package
---------------------
Project wide building blocks:

- paths: Path constants
- exceptions: Exception hierarchy
- logging_manager: DoctorLogger and CLI error handling
- console: ConsoleIO terminal input and output
- cli_options: Reusable click options
"""
