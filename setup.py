from setuptools import find_packages, setup

README = ""
CHANGES = ""

requires = [
    "fastapi<0.137",
    "uvicorn",
    "jinja2",
    "python-multipart",
    "python-dotenv",
    "psutil",
    "vtjson",
]

tests_require = [
    "httpx",
]

setup(
    name="devops-practice",
    version="1.0.0",
    description="devops-practice",
    long_description=README + "\n\n" + CHANGES,
    classifiers=[
        "Programming Language :: Python",
        "Framework :: FastAPI",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    author="",
    author_email="",
    url="",
    keywords="web fastapi practice",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"devops_practice": ["templates/*.j2"]},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    install_requires=requires,
    extras_require={"test": tests_require},
    entry_points={
        "console_scripts": [
            "devops-practice = devops_practice.__main__:main",
        ],
    },
)
