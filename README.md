# yieldpage

A crawler that starts from a web URL and yields each page it finds: the
page's URL, its extracted text and the links discovered on it. Pages are
handed back as they are scraped, so processing can begin before the crawl is
over.

Web crawling drives a browser through a WebDriver server (for example
ChromeDriver or geckodriver). The crawler connects to
`http://localhost:4444` by default; set the `WEBDRIVER_URL` environment
variable to use another address. If the server cannot be reached, the ports
`http://localhost:9515`, `http://localhost:4723`, `http://localhost:9222`
and `http://127.0.0.1:4444` are tried in turn.

## Installation

```
pip install yieldpage
```

To run the test suite:

```
pip install "yieldpage[test]"
pytest
```

## Command line

Three commands are installed.

### `yield-page`

Crawl a URL and log each page as it arrives (logging at INFO level goes to
standard error).

```
yield-page https://docs.example.com/guide/ --concurrency 4
```

- `uri` – where to start crawling
- `-t`, `--type` – the kind of URI; `web` is the only choice
- `-c`, `--concurrency` – number of concurrent workers (default 4)
- `--idle-timeout` – idle timeout in seconds (default 300)
- `--total-timeout` – total timeout in seconds (default 1200)
- `-V`, `--version` – print the version

The exit status is 1 if the crawl cannot be started.

### `yield-page-config`

Crawl according to a JSON configuration file:

```
yield-page-config --config crawl.json --concurrency 8
```

- `-c`, `--config` – path to the configuration file (required)
- `--concurrency` – override the maximum concurrency
- `-i`, `--idle-timeout` – override the idle timeout in seconds
- `-t`, `--total-timeout` – override the total timeout in seconds

It prints a summary of the loaded configuration, each page received, and the
total count and elapsed time at the end. A configuration that is not of the
`Web` kind is loaded and summarised, then the command stops with an error.

### `yield-page-build`

Crawl a URL, layering settings from a file, then from a JSON string, then
from command-line overrides:

```
yield-page-build --url https://docs.example.com/ --config-file crawl.json --concurrency 2
```

- `-u`, `--url` – URL to crawl (required)
- `--config-file` – path to a JSON configuration file
- `-c`, `--config` – JSON configuration string, applied after the file
- `--concurrency`, `-i`/`--idle-timeout`, `-t`/`--total-timeout` – overrides

## Configuration

A configuration is a JSON object whose `type` field selects the kind:
`Web`, `Git`, `Filesystem` or `S3`.

```json
{
  "type": "Web",
  "start_url": "https://docs.example.com/guide/",
  "max_concurrency": 5,
  "allow_external": false,
  "include_patterns": ["\\.html$"],
  "exclude_patterns": ["/drafts/"],
  "webdriver_url": "http://localhost:4444"
}
```

| kind       | required fields       | defaults                                                                   |
|------------|-----------------------|----------------------------------------------------------------------------|
| Web        | `start_url`           | `max_concurrency` 5, `allow_external` false, `webdriver_url` `http://localhost:4444` |
| Git        | `repo_url`            | `branch` `main`                                                            |
| Filesystem | `root_dir`            | `max_depth` 10                                                             |
| S3         | `bucket`, `region`    | `prefix` `""`                                                              |

Every kind also takes `include_patterns` and `exclude_patterns`, both empty
by default. `yieldpage.config` provides `config_from_dict`,
`config_from_json`, `config_from_file` and `config_to_dict`; a malformed
configuration raises `ConfigError` (a `ValueError`), and an unreadable file
raises `OSError`.

When a configuration is applied to the `Pages` builder (as the commands
do), only `max_concurrency` of a `Web` configuration is taken over; the
other fields are not used by the crawl started from `Pages`.

## Library use

### Starting a crawl

```python
import asyncio
from yieldpage.pages import Pages, WebUri

async def run():
    pages = Pages(WebUri("https://docs.example.com/guide/")).with_max_concurrency(2)
    async with await pages.generate() as stream:
        async for page in stream:
            print(page.url, len(page.links))

asyncio.run(run())
```

`Pages` is immutable; `with_max_concurrency`, `with_idle_timeout`,
`with_total_timeout`, `with_config`, `with_config_file` and
`with_config_str` each return an updated copy. `generate()` returns a
`PageStream` (from `yieldpage.crawlers.web`) that can be iterated with
`async for`, read with `recv()` (which returns `None` at the end), or
stopped with `aclose()`. Each item is a `PageData` with `url`, `title`,
`content` and `links`, and `to_dict()` for a JSON-ready mapping.

A `GitUri`, `FilesystemUri` or `S3Uri` raises `UnsupportedUriError`.

`yieldpage.crawlers.web.start(config)` starts a crawl directly from a
`WebCrawlerConfig`, where all its fields take effect. Unless
`allow_external` is set, the crawl stays on the start URL's domain and under
its path. Images, stylesheets, scripts, fonts and PDFs are always skipped,
and exclude patterns win over include patterns. URLs are stripped of their
fragment and each is visited once.

A crawl ends when the workers find no new URL to process within a few
seconds (five for the first worker, less for the others).

### Filtering and parsing

`yieldpage.filter.UrlFilter` applies the domain, path and pattern rules
from a `UrlFilterConfig`.

```python
from yieldpage.parsers.text import TextParserOptions, parse

result = parse("Paragraph 1.\n\n\n\nParagraph 2.", TextParserOptions(preserve_paragraphs=True))
print(result.content)  # "Paragraph 1.\n\nParagraph 2."
```

`yieldpage.parsers.html.parse` extracts the whitespace-normalised body
text and every `<a href>` of an HTML document; `parse_text_only` and
`parse_links_only` return one or the other. `yieldpage.parsers.dispatch`
has `parse` and `parse_from_url`; the latter picks a parser with
`ParserType.from_url`: `.txt`, `.yaml`, `.yml` and `/_sources/` paths are
read as text, images, stylesheets and scripts as plain text too, `.pdf` as
PDF, and anything else as HTML.

`yieldpage.crawlers.webdriver.WebDriverClient` is a small asynchronous
WebDriver client (`connect`, `goto`, `source`, `close`), and
`yieldpage.crawlers.base.Crawler` is an abstract base for crawlers.

## Limitations

- Only web URLs can be crawled. Git, filesystem and S3 configurations can
  be loaded and inspected, but no crawler exists for them.
- The idle and total timeouts are accepted and stored, but the crawl does
  not enforce them.
- Page titles are not extracted; `title` is always `None`.
- PDF content is not parsed; its content is a fixed placeholder message.
- Nothing is stored: pages are only handed to the caller (or reported by
  the commands).