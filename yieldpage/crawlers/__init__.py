"""The web crawler, a crawler base class and a minimal WebDriver client."""