from setuptools import setup


setup(
    name='market-brief',
    packages=['market_brief', 'utils'],
    py_modules=['run_bot'],
    version='0.2.0',
    license='GPL-3.0',
    description='Telegram bot that posts a daily market briefing (KOSPI/KOSDAQ, KRW FX, charts) and answers quote commands.',
    keywords=['telegram', 'kospi', 'finance', 'quotes'],
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'beautifulsoup4',
        'flask',
        'apscheduler>=3.9,<4',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['market-brief=run_bot:main'],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Programming Language :: Python :: 3',
    ],
)
