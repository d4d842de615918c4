"""Shared test fixtures for the Preview Medic test suite."""

import pytest

from medic.capture.models import ErrorContext, GeneratedFile
from medic.capture.monitor import ErrorMonitor

APP_SOURCE = "\n".join(
    [
        "import React from 'react';",
        "import Header from './components/Header';",
        "",
        "export default function App() {",
        "  return (",
        "    <main>",
        '      <div className="card">',
        "      <Header />",
        "    </main>",
        "  );",
        "}",
    ]
)

HEADER_SOURCE = "\n".join(
    [
        "import { useState } from 'react';",
        "",
        "export default function Header() {",
        "  const [open, setOpen] = useState(false);",
        '  return <header className="p-4">Menu</header>;',
        "}",
    ]
)


@pytest.fixture
def app_file():
    return GeneratedFile(path="src/App.tsx", content=APP_SOURCE, language="typescript")


@pytest.fixture
def header_file():
    return GeneratedFile(path="src/components/Header.tsx", content=HEADER_SOURCE, language="typescript")


@pytest.fixture
def generated_files(app_file, header_file):
    return [app_file, header_file]


@pytest.fixture
def error_context(generated_files):
    return ErrorContext(
        generated_files=generated_files,
        bundled_code="/* bundle */",
        preview_url="http://localhost:5173/preview",
        user_prompt="Build a landing page with a header.",
    )


@pytest.fixture
def monitor():
    return ErrorMonitor(session_id="test-session")
