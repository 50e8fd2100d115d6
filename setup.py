from setuptools import setup, find_packages

setup(
    name="canvas-cms",
    version="0.1.0",
    description="Layout canvas rendering and frontend builder saving for a content management service",
    packages=find_packages(include=["canvas_cms", "canvas_cms.*"]),
    python_requires=">=3.9",
    install_requires=[
        "Flask>=3.0",
        "Flask-SQLAlchemy>=3.1",
        "SQLAlchemy>=2.0",
        "Flask-Migrate>=4.0",
        "Flask-Login>=0.6.3",
        "Flask-Talisman>=1.1",
        "Flask-Limiter>=3.5",
        "Werkzeug>=3.0",
        "Jinja2>=3.1",
        "MarkupSafe>=2.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "pylint>=2.17.0",
        ]
    },
)
