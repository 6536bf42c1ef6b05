from setuptools import setup

setup(
    name='multi-stack-sls',
    version='1.0.0',
    description='Run Serverless Framework commands across multiple stacks and regions',
    py_modules=[
        'args_resolver',
        'config_parser',
        'env_loader',
        'multi_stack_cli',
        'stack_dispatcher',
        'validation',
    ],
    python_requires='>=3.9',
    install_requires=[
        'boto3>=1.28.0',
        'PyYAML>=6.0',
        'jsonschema>=4.19.0',
        'python-dotenv>=1.0.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'hypothesis>=6.88.0',
            'mypy>=1.5.0',
            'types-PyYAML>=6.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'multi-stack-sls=multi_stack_cli:run',
        ],
    },
)
