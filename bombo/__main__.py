from bombo.interpreter import cli_main

cli_main()
