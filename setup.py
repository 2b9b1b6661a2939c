from setuptools import setup

with open("requirements_pip.txt") as req_file:
    requirements = [req.strip() for req in req_file.readlines() if req.strip()]

setup(
    name='anno_tools',
    description="Command-line filters for transcript tables and variant annotation TSVs",
    install_requires=requirements,
    extras_require={'test': ['pytest']},
    license="GPL-3.0-or-later",
    python_requires=">=3.8",
    version="1.0",
    zip_safe=False,
    packages=['anno_tools', 'anno_tools.tests'],
    entry_points={
        'console_scripts': [
            'anno_gtf2table=anno_tools.cli:gtf2table',
            'anno_canonical_table=anno_tools.cli:canonicalTable',
            'anno_table2bed=anno_tools.cli:table2bedCmd',
            'anno_filter_variants=anno_tools.cli:filterVariants',
            'anno_add_gtex=anno_tools.cli:addGtexCmd',
        ]
    },
)
