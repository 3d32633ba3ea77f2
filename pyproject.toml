[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tlsblock"
version = "0.1.0"
description = "Block TLS connections by server name (SNI) by injecting TCP resets"
requires-python = ">=3.10"
dependencies = []
keywords = ["tls", "sni", "firewall", "tcp", "rst", "packet"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Firewalls",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tls-block = "tlsblock.blocker:main"

[tool.hatch.build.targets.wheel]
packages = ["tlsblock"]

[tool.pytest.ini_options]
addopts = "-ra"
