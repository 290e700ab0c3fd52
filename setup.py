from setuptools import find_packages, setup

setup(
    name="fiscaldo",
    version="1.0.0",
    description="Herramientas fiscales para la República Dominicana (RNC, NCF, ITBIS, reportes DGII)",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "openpyxl",
        "SQLAlchemy>=2.0",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["fiscaldo=fiscaldo.cli:main"]},
)
