from setuptools import setup, find_packages

setup(
    name='shopscraper',
    version='1.0.0',
    description='Concurrent product catalog scraper with CSV export',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'selenium',
        'webdriver-manager',
        'beautifulsoup4',
        'lxml',
        'python-dotenv',
        'requests',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'shopscraper=shopscraper.__main__:main',
        ],
    },
    python_requires='>=3.8',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
)
