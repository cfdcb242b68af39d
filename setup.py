from setuptools import setup, find_packages

setup(
    name="zeroagent",
    version="0.1.0",
    description="zeroagent - оркестратор жизненного цикла навыков: реестр, тарифы, расписания и триггеры",
    author="zeroagent Team",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "GitPython>=3.1.43",
        "PyYAML>=6.0.2",
        "APScheduler>=3.10,<4",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.3.2",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "zeroagent=zeroagent.apps.cli.app:app",  # команда `zeroagent`
        ],
    },
)
