"""Pull request providers (GitHub, Bitbucket Cloud, Bitbucket Data Center)."""
