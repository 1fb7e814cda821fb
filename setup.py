from setuptools import setup, find_packages

setup(
    name='image_builder',
    version='0.1',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.9',
    install_requires=[
        'Click',
        'PyYAML',
        'docker',
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points='''
        [console_scripts]
        image-builder=image_builder.cli:main
    ''',
)
