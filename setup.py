from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="auth-code-adfs-e2e",
    version="1.0.0",
    author="volkb79-2",
    description="Browser-driven end-to-end tests for the auth code sample app signing in through ADFS",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["auth_code_e2e", "auth_code_e2e.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing",
        "Topic :: Security",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.24",
            "pytest-timeout>=2.3",
        ],
    },
    entry_points={
        "console_scripts": [
            "auth-code-mock-adfs=auth_code_e2e.mock_adfs_server:main",
        ],
    },
)
