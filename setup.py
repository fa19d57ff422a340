"""
Setup script for Bill Reminder Agent
"""
from setuptools import setup

setup(
    name="bill-reminder-agent",
    version="1.0.0",
    description="Email reminders for recurring bills with overdue escalation",
    author="Personal Super App",
    python_requires=">=3.10",
    py_modules=[
        "config",
        "reminders",
        "templates",
        "notifications",
        "database",
        "dispatcher",
        "scheduler",
        "agent",
    ],
    install_requires=[
        "httpx>=0.25.0",
        "python-dateutil>=2.8.2",
        "jinja2>=3.1.2",
        "click>=8.1.0",
        "rich>=13.0.0",
        "schedule>=1.2.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bill-reminder=agent:main",
        ],
    },
)
